from pydantic import BaseModel


class Stream(BaseModel):
    name: str
    description: str
    ytId: str


class StreamResponse(BaseModel):
    streams: list[Stream]
