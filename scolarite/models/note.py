from typing import ClassVar, Optional

from pydantic import BaseModel, Field

VALEUR_MIN = 0
VALEUR_MAX = 20


class Note(BaseModel):
    id: int
    eleve_id: int
    examen_id: int
    valeur: float
    matiere_id: Optional[int] = None


class NoteCreate(BaseModel):
    eleve_id: int = Field(..., ge=1, description="ID de l'élève noté")
    examen_id: int = Field(..., ge=1, description="ID de l'examen")
    valeur: float = Field(10, ge=VALEUR_MIN, le=VALEUR_MAX, allow_inf_nan=False, description='Note sur 20')
    matiere_id: int = Field(..., ge=1, description="ID de la matière de l'examen")

    messages: ClassVar[dict] = {
        'eleve_id': "ID de l'élève requis",
        'examen_id': 'Examen requis',
        'matiere_id': 'Matière requise',
        'valeur': 'La note doit être entre 0 et 20',
        ('valeur', 'float_parsing'): 'La note doit être un nombre',
        ('valeur', 'float_type'): 'La note doit être un nombre',
    }


class NoteUpdate(BaseModel):
    eleve_id: Optional[int] = Field(None, ge=1)
    examen_id: Optional[int] = Field(None, ge=1)
    valeur: Optional[float] = Field(None, ge=VALEUR_MIN, le=VALEUR_MAX, allow_inf_nan=False)
    matiere_id: Optional[int] = Field(None, ge=1)

    messages: ClassVar[dict] = NoteCreate.messages
