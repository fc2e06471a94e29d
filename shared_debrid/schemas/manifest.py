from pydantic import BaseModel, Field


class BehaviorHints(BaseModel):
    configurable: bool = True
    configurationRequired: bool = False


class Manifest(BaseModel):
    id: str = "com.github.anhkind"
    version: str
    name: str = "Shared Debrid Notifier"
    description: str = "Notify current user if the shared debrid is being used by others"
    logo: str = "https://raw.githubusercontent.com/anhkind/stremio-shared-debrid/master/images/logo-colored-256.png"
    resources: list[str] = Field(default_factory=lambda: ["stream"])
    catalogs: list[dict] = Field(default_factory=list)
    types: list[str] = Field(default_factory=lambda: ["movie", "series", "channel", "tv"])
    behaviorHints: BehaviorHints = Field(default_factory=BehaviorHints)
