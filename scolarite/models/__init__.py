from scolarite.models.eleve import Eleve, EleveCreate, EleveUpdate
from scolarite.models.note import Note, NoteCreate, NoteUpdate, VALEUR_MIN, VALEUR_MAX
from scolarite.models.examen import Examen, ExamenCreate, ExamenUpdate
from scolarite.models.matiere import Matiere, MatiereCreate, MatiereUpdate

Examen.model_rebuild()
Matiere.model_rebuild()

__all__ = [
    'Eleve', 'EleveCreate', 'EleveUpdate',
    'Matiere', 'MatiereCreate', 'MatiereUpdate',
    'Examen', 'ExamenCreate', 'ExamenUpdate',
    'Note', 'NoteCreate', 'NoteUpdate',
    'VALEUR_MIN', 'VALEUR_MAX',
]
