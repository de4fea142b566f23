"""Schemas for user-related requests and responses."""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class UserResponse(BaseModel):
    """A user as seen by another user of the app."""

    id: int
    nome_completo: Optional[str] = None
    email: str
    celular: Optional[str] = None
    tipo_usuario: Optional[str] = None
    plano_id: Optional[int] = None
    peso_atual_kg: Optional[float] = None
    responsavel_nome: Optional[str] = None
    responsavel_tipo: Optional[str] = None


class VisibleUsersResponse(BaseModel):
    """Users the requester may select as the viewed user, self first."""

    total: int
    usuarios: List[UserResponse]


class DependentCreateRequest(BaseModel):
    """Payload for adding a dependent to the requester's plan."""

    nome_completo: str = Field(..., min_length=1, examples=["Maria Silva"], description="Dependent's full name")
    email: str = Field(..., min_length=3, examples=["maria@example.com"], description="Login email (normalized to lower case)")
    celular: Optional[str] = Field(None, examples=["+55 11 99999-0000"], description="Mobile number")


class ManagedUserCreateRequest(BaseModel):
    """Payload for a socio creating a cliente or gestor account."""

    nome_completo: str = Field(..., min_length=1, examples=["João Souza"], description="User's full name")
    email: str = Field(..., min_length=3, examples=["joao@example.com"], description="Login email (normalized to lower case)")
    tipo_usuario: str = Field(..., examples=["cliente"], description="Account role: cliente or gestor")
    celular: Optional[str] = Field(None, examples=["+55 11 98888-0000"], description="Mobile number")
    plano_id: Optional[int] = Field(None, examples=[1], description="Subscription plan id")


class PasswordUpdateRequest(BaseModel):
    """Payload for setting a new password."""

    password: str = Field(..., examples=["nova-senha"], description="New password (at least 6 characters)")


class PasswordUpdateResponse(BaseModel):
    usuario_id: int
    atualizado: bool


class UserStatsResponse(BaseModel):
    """Account totals visible to gestor and socio accounts."""

    total_usuarios: int
    por_tipo: Dict[str, int]
    usuarios_ativos_30_dias: int
