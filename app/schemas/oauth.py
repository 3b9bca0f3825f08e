"""Provider-neutral OAuth profile returned by the Google and Facebook adapters."""

from pydantic import BaseModel, Field, field_validator


class OAuthProfile(BaseModel):
    """What a provider asserted about the signed-in user."""

    model_config = {"extra": "ignore"}

    id: str = Field(..., min_length=1, description="Provider subject id")
    emails: list[str] = Field(default_factory=list, description="Verified addresses, primary first")
    display_name: str = Field(default="", description="Display name as reported by the provider")
    photos: list[str] = Field(default_factory=list, description="Avatar URLs, preferred first")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        # Graph API ids are numeric strings; accept bare ints too.
        if isinstance(v, int):
            return str(v)
        return v
