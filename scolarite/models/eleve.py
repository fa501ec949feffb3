from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field


class Eleve(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    nom: str
    prenom: str
    classe: str
    created_at: Optional[datetime] = Field(None, alias='createdAt')
    updated_at: Optional[datetime] = Field(None, alias='updatedAt')

    @property
    def full_name(self):
        return f'{self.prenom or ""} {self.nom or ""}'.strip()

    def __str__(self):
        return self.full_name


class EleveCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nom: str = Field(..., min_length=1, description="Nom de famille de l'élève")
    prenom: str = Field(..., min_length=1, description="Prénom de l'élève")
    classe: str = Field(..., min_length=1, description='Niveau, par exemple L1 ou M2')

    messages: ClassVar[dict] = {
        'nom': 'Nom est requis',
        'prenom': 'Prénom est requis',
        'classe': 'Classe est requise',
    }


class EleveUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nom: Optional[str] = Field(None, min_length=1)
    prenom: Optional[str] = Field(None, min_length=1)
    classe: Optional[str] = Field(None, min_length=1)

    messages: ClassVar[dict] = EleveCreate.messages
