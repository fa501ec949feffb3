from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from scolarite.models.examen import Examen
from scolarite.models.note import Note


class Matiere(BaseModel):
    id: int
    nom: str
    examens: List[Examen] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)

    def __str__(self):
        return self.nom


class MatiereCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nom: str = Field(..., min_length=1, description='Nom de la matière')

    messages: ClassVar[dict] = {
        'nom': 'Le nom de la matière est requis',
    }


class MatiereUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nom: Optional[str] = Field(None, min_length=1)

    messages: ClassVar[dict] = MatiereCreate.messages
