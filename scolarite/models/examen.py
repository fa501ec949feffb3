import datetime
from typing import ClassVar, List, Optional

from pydantic import BaseModel, Field

from scolarite.models.note import Note


class Examen(BaseModel):
    id: int
    matiere_id: Optional[int] = None
    date: Optional[str] = None
    matiere: Optional['Matiere'] = None
    notes: List[Note] = Field(default_factory=list)


class ExamenCreate(BaseModel):
    matiere_id: int = Field(..., ge=1, description="ID de la matière évaluée")
    date: datetime.date = Field(..., description="Date de l'examen (AAAA-MM-JJ)")

    messages: ClassVar[dict] = {
        'matiere_id': 'Matière requise',
        'date': 'Date requise',
        ('date', 'date_from_datetime_parsing'): 'Date invalide (format AAAA-MM-JJ)',
        ('date', 'date_parsing'): 'Date invalide (format AAAA-MM-JJ)',
    }


class ExamenUpdate(BaseModel):
    matiere_id: Optional[int] = Field(None, ge=1)
    date: Optional[datetime.date] = None

    messages: ClassVar[dict] = ExamenCreate.messages
