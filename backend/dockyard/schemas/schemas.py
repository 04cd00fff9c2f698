from typing import Any
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


# ------------------------------------------------------------
# Error body shared by every failure response
# ------------------------------------------------------------


class NormalizedErrorResponse(BaseModel):
    """``{statusCode, error, message, data?}`` – ``data`` only when the failure had one."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    error: str
    message: str
    data: Optional[Any] = None

    def body(self) -> dict:
        # ``data`` is only ever *set* when present, so exclude_unset drops it otherwise.
        return self.model_dump(by_alias=True, exclude_unset=True)


class StatusOut(BaseModel):
    status: str
