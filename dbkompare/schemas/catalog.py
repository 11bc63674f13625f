# dbkompare/schemas/catalog.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateQuestionsRequest(BaseModel):
    questions: Any = Field(None, description="Lista de preguntas con sus opciones")
    quizId: Optional[str] = Field(None, description="Quiz al que se añaden las preguntas")


class GroupCreateRequest(BaseModel):
    name: str = Field(..., description="Nombre del grupo", min_length=1, max_length=255)
    description: Optional[str] = Field(None, description="Descripción del grupo")
    quizIds: List[str] = Field(default_factory=list, description="Quizzes que forman el grupo")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Valida y limpia el nombre"""
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class PlanCreateRequest(BaseModel):
    plans: Optional[List[Any]] = Field(None, description="Planes a crear; vacío crea los planes por defecto")


class PlanStatusRequest(BaseModel):
    status: Optional[str] = Field(None, description="ACTIVE o INACTIVE")


class DbToolCreateRequest(BaseModel):
    """
    Alta de una herramienta; los campos del comparador son libres.
    """
    model_config = ConfigDict(extra="allow")

    tool_name: Optional[str] = Field(None, description="Nombre de la herramienta")
    category_id: Optional[Any] = Field(None, description="Categoría")
    autofill: bool = Field(False, description="Completar campos vacíos con OpenAI")

    def tool_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"autofill"})


class DbToolUpdateRequest(BaseModel):
    """
    Campos a modificar; sólo se aplican los editables presentes.
    """
    model_config = ConfigDict(extra="allow")

    def changes(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class DbToolIdsRequest(BaseModel):
    ids: Any = Field(None, description="Ids de las herramientas")
    isPopulate: bool = Field(False, description="Completar las fichas con OpenAI")
