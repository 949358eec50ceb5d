"""Types shared by request schemas and route parameters."""

from typing import Annotated

from pydantic import Field

# Primary keys are 32-bit INTEGER columns.
MAX_ID = 2_147_483_647

RecordId = Annotated[int, Field(ge=1, le=MAX_ID)]
