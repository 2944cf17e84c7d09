from pydantic import BaseModel, ConfigDict, Field


class TeacherSubjectItem(BaseModel):
    """Subject/line pair the caller teaches (booking form dropdown)."""

    model_config = ConfigDict(extra="forbid")

    id: int = Field(..., description="Subject id")
    name: str = Field(..., description='"<subject name> (Line <n>)"')
    code: str
    line: int
