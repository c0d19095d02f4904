"""Wire schema of the membership service's ``/memberlist`` JSON view."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, Strict, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# JSON integers only; floats, numeric strings and values outside int64 are rejected.
Int64 = Annotated[int, Strict(), Field(ge=INT64_MIN, le=INT64_MAX)]


class MemberRecord(BaseModel):
    """One member entry of a membership snapshot.

    Only ``last_heartbeat`` feeds the staleness metric; the remaining fields
    mirror the upstream schema.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    address: str = Field("", alias="addr", strict=True, description="Member address")
    last_heartbeat: Int64 = Field(
        0, alias="timestamp", description="Last heartbeat, unix seconds"
    )
    tokens: tuple[Int64, ...] = Field((), description="Ring tokens owned by the member")
    registered_at: Int64 = Field(
        0, alias="registered_timestamp", description="Registration time, unix seconds"
    )

    @field_validator("tokens", mode="before")
    @classmethod
    def _null_tokens(cls, value: Any) -> Any:
        return () if value is None else value


class MembershipSnapshot(BaseModel):
    """Decoded membership view at one point in time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    members: dict[str, MemberRecord] = Field(default_factory=dict, alias="ingesters")

    @field_validator("members", mode="before")
    @classmethod
    def _null_members(cls, value: Any) -> Any:
        return {} if value is None else value
