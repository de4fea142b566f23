"""SQLAlchemy ORM models for the Ethra nutrition tracker.

Table and column names mirror the backend schema the product was built on
(`usuarios`, `informacoes_nutricionais`, ...) so that persisted report
payloads keep their original keys. Models carry no behavior;
entry tables carry a `deletado_em` soft-delete column that every read path
filters on.
"""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class UserRole(str, enum.Enum):
    """The closed set of account roles."""

    CLIENTE = "cliente"
    SOCIO = "socio"
    GESTOR = "gestor"
    DEPENDENTE = "dependente"


class ReportStatus(str, enum.Enum):
    """Delivery status of a generated report."""

    PENDENTE = "pendente"
    ENVIADO = "enviado"
    FALHA = "falha"


class ReportType(str, enum.Enum):
    """Which data domains a report covers."""

    COMPLETO = "completo"
    NUTRICIONAL = "nutricional"
    PESO = "peso"
    HIDRATACAO = "hidratacao"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Plan(Base):
    """Subscription plan; `max_dependentes` of None means unlimited."""

    __tablename__ = "planos"
    id = Column(Integer, primary_key=True, index=True)
    nome_plano = Column(String, nullable=False)
    max_dependentes = Column(Integer, nullable=True)
    ativo = Column(Boolean, default=True)


class User(Base):
    """ORM model representing an account of any role."""

    __tablename__ = "usuarios"
    id = Column(Integer, primary_key=True, index=True)
    nome_completo = Column(String, nullable=True)
    email = Column(String, nullable=False, unique=True, index=True)
    celular = Column(String, nullable=True)
    tipo_usuario = Column(
        Enum(UserRole, values_callable=_enum_values, name="tipo_usuario"),
        nullable=True,
    )
    plano_id = Column(Integer, ForeignKey("planos.id"), nullable=True)
    peso_atual_kg = Column(Float, nullable=True)
    password_hash = Column(String, nullable=True)
    criado_em = Column(DateTime, default=datetime.utcnow)
    atualizado_em = Column(DateTime, default=datetime.utcnow)


class UserLink(Base):
    """Link between a dependent/client and the principal that manages it."""

    __tablename__ = "vinculos_usuarios"
    id = Column(Integer, primary_key=True, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    usuario_principal_id = Column(Integer, ForeignKey("usuarios.id"), nullable=True, index=True)
    tipo_vinculo = Column(String, nullable=False, default=UserRole.DEPENDENTE.value)
    ativo = Column(Boolean, default=True)
    data_vinculo = Column(DateTime, default=datetime.utcnow)


class Goal(Base):
    """Per-user daily targets; at most one row per user, every field optional."""

    __tablename__ = "metas_usuario"
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), primary_key=True)
    calorias_diarias = Column(Integer, nullable=True)
    agua_diaria_ml = Column(Integer, nullable=True)
    peso_objetivo = Column(Float, nullable=True)
    atualizado_em = Column(DateTime, default=datetime.utcnow)


class NutritionEntry(Base):
    """A logged meal with its macronutrients."""

    __tablename__ = "informacoes_nutricionais"
    timestamp_field = "data_registro"

    id = Column(Integer, primary_key=True, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    data_registro = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    calorias = Column(Float, nullable=True)
    proteinas = Column(Float, nullable=True)
    carboidratos = Column(Float, nullable=True)
    gorduras = Column(Float, nullable=True)
    descricao_ia = Column(Text, nullable=True)
    deletado_em = Column(DateTime, nullable=True)


class WeightEntry(Base):
    """A weight sample in kilograms."""

    __tablename__ = "registro_peso"
    timestamp_field = "data_registro"

    id = Column(Integer, primary_key=True, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    data_registro = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    peso_kg = Column(Float, nullable=False)
    observacoes = Column(Text, nullable=True)
    deletado_em = Column(DateTime, nullable=True)


class HydrationEntry(Base):
    """A hydration sample in millilitres."""

    __tablename__ = "registro_hidratacao"
    timestamp_field = "horario"

    id = Column(Integer, primary_key=True, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    horario = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    quantidade_ml = Column(Integer, nullable=False)
    tipo_liquido = Column(String, nullable=True)
    deletado_em = Column(DateTime, nullable=True)


class Report(Base):
    """Persisted report snapshot; only delivery fields change after creation."""

    __tablename__ = "relatorios_semanais"
    id = Column(Integer, primary_key=True, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=False, index=True)
    tipo = Column(String, nullable=False, default=ReportType.COMPLETO.value)
    data_inicio = Column(Date, nullable=False)
    data_fim = Column(Date, nullable=False)
    dados_nutricionais = Column(JSON, nullable=False)
    insights = Column(Text, nullable=True)
    comparacao_semanal = Column(JSON, nullable=True)
    status_envio = Column(
        Enum(ReportStatus, values_callable=_enum_values, name="tipo_status_envio"),
        default=ReportStatus.PENDENTE,
    )
    criado_em = Column(DateTime, default=datetime.utcnow)
    enviado_em = Column(DateTime, nullable=True)
