from pydantic import BaseModel

from wellsync.schemas.profile import WeightUnit
from wellsync.schemas.questions import Question


class QuestionSelectionBody(BaseModel):
    questions: list[Question]


class WeightUnitBody(BaseModel):
    weight_unit: WeightUnit
