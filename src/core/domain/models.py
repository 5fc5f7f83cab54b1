"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta y documentación autocontenida (Field) sin acoplar el
  Core a librerías de I/O.
- Normaliza el JSON del backend GraphQL (camelCase) a atributos Python.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class PostType(str, Enum):
    """Tipos de post de la comunidad."""

    QUESTION = "QUESTION"
    DISCUSSION = "DISCUSSION"

    def label(self) -> str:
        return "Question" if self is PostType.QUESTION else "Discussion"


class CredentialTier(str, Enum):
    """Contextos de autorización que se prueban en orden para una lectura."""

    PRIMARY = "primary"
    SECONDARY = "secondary"

    @classmethod
    def read_order(cls) -> tuple["CredentialTier", ...]:
        return (cls.PRIMARY, cls.SECONDARY)


class Post(BaseModel):
    """Post tal como lo devuelven las queries de lista/lookup."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1, description="Identificador del registro.")
    owner: str | None = Field(default=None, description="Usuario propietario.")
    type: PostType = Field(default=PostType.QUESTION, description="Pregunta o discusión.")
    title: str = Field(default="", description="Título visible.")
    slug: str = Field(default="", description="Identificador URL-safe único.")
    content_md: str | None = Field(
        default=None,
        alias="contentMD",
        description="Cuerpo en Markdown.",
    )
    tags: list[str] = Field(default_factory=list, description="Etiquetas libres.")
    score: int = Field(default=0, description="Puntuación agregada de votos.")
    answers_count: int = Field(default=0, alias="answersCount", description="Respuestas publicadas.")
    accepted_answer_id: str | None = Field(
        default=None,
        alias="acceptedAnswerId",
        description="Respuesta aceptada por el autor (si existe).",
    )
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Post":
        # El backend devuelve null en listas/números opcionales.
        cleaned = {k: v for k, v in data.items() if v is not None}
        return cls.model_validate(cleaned)


class Answer(BaseModel):
    """Respuesta a un post."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    owner: str | None = Field(default=None, description="Usuario que responde.")
    post_id: str | None = Field(default=None, alias="postId", description="Post al que responde.")
    content_md: str | None = Field(default=None, alias="contentMD")
    score: int = Field(default=0)
    is_accepted: bool = Field(default=False, alias="isAccepted")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Answer":
        cleaned = {k: v for k, v in data.items() if v is not None}
        return cls.model_validate(cleaned)


class UserProfile(BaseModel):
    """Perfil público (solo lo necesario para mostrar un nombre)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    username: str | None = None


class PostThread(BaseModel):
    """Post con sus respuestas, leídos bajo el mismo tier de credenciales.

    `answers` ya viene ordenado: la aceptada primero, luego las más recientes.
    """

    post: Post
    answers: list[Answer] = Field(default_factory=list)
    tier: CredentialTier | None = Field(default=None, description="Tier que encontró el post.")


class PageResult(BaseModel, Generic[T]):
    """Una página devuelta por la query de lista."""

    items: list[T] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, description="Token de continuación o None al final.")


class ListPage(BaseModel, Generic[T]):
    """Estado de lista paginada, propiedad de un único `CursorPager`.

    `items` conserva el orden de llegada y solo crece; `cursor` es None
    cuando la colección se agotó.
    """

    items: list[T] = Field(default_factory=list)
    cursor: str | None = None
    loading: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        return self.cursor is not None


class OperationCandidate(BaseModel):
    """Una hipótesis del esquema de creación: nombre de operación + campo de contenido."""

    model_config = ConfigDict(frozen=True)

    operation_id: str = Field(..., min_length=1, description="Nombre de la mutación (p.ej. 'createPost').")
    payload_field_key: str = Field(..., min_length=1, description="Campo que lleva el contenido libre.")
    pinned: bool = Field(default=False, description="Candidato configurado externamente.")

    @property
    def input_type(self) -> str:
        return self.operation_id[0].upper() + self.operation_id[1:] + "Input"

    @property
    def label(self) -> str:
        origin = "pinned" if self.pinned else "auto"
        return f"{origin}:{self.operation_id}({self.input_type})·content={self.payload_field_key!r}"

    def key(self) -> tuple[str, str]:
        return (self.operation_id, self.payload_field_key)


class Attempt(BaseModel):
    """Resultado de probar un candidato."""

    candidate: OperationCandidate
    outcome: Literal["success", "failure"]
    payload: dict[str, Any] | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == "success"

    def render(self) -> str:
        head = f"{self.candidate.operation_id} · {self.candidate.payload_field_key}"
        if self.succeeded:
            return f"{head}: ok"
        return f"{head}: {self.message or 'failed'}"


class AttemptTrail(BaseModel):
    """Registro ordenado de una negociación (nunca se persiste)."""

    attempts: list[Attempt] = Field(default_factory=list)

    def record_success(self, candidate: OperationCandidate, payload: dict[str, Any]) -> Attempt:
        attempt = Attempt(candidate=candidate, outcome="success", payload=payload)
        self.attempts.append(attempt)
        return attempt

    def record_failure(self, candidate: OperationCandidate, message: str) -> Attempt:
        attempt = Attempt(candidate=candidate, outcome="failure", message=message)
        self.attempts.append(attempt)
        return attempt

    @property
    def failures(self) -> list[Attempt]:
        return [a for a in self.attempts if not a.succeeded]

    def render(self) -> str:
        """Texto legible, una línea por intento."""

        return "\n".join(a.render() for a in self.attempts)

    def __len__(self) -> int:
        return len(self.attempts)


class NegotiationResult(BaseModel):
    """Resultado de `MutationNegotiator.negotiate`."""

    winner: OperationCandidate | None = None
    payload: dict[str, Any] | None = None
    trail: AttemptTrail = Field(default_factory=AttemptTrail)

    @property
    def succeeded(self) -> bool:
        return self.winner is not None and self.payload is not None


class SlugClaim(BaseModel):
    """Slug derivado de un título y cómo se obtuvo su unicidad."""

    base: str
    resolved: str
    strategy: Literal["unchanged", "suffixed", "timestamped"] = "unchanged"


class Draft(BaseModel):
    """Formulario de post sin enviar, persistido localmente."""

    title: str = ""
    content_md: str = ""
    tags: str = Field(default="", description="Texto crudo separado por comas.")
    type: PostType = PostType.QUESTION
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def tag_list(self) -> list[str]:
        return [t.strip() for t in self.tags.split(",") if t.strip()]


class PostInput(BaseModel):
    """Contenido lógico de un post nuevo, antes de mapearlo a un esquema candidato."""

    owner: str
    type: PostType = PostType.QUESTION
    title: str
    content_md: str
    tags: list[str] = Field(default_factory=list)
    score: int = 0
    answers_count: int = 0
    slug: str

    def to_payload(self, content_field_key: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "owner": self.owner,
            "type": self.type.value,
            "title": self.title,
            "tags": list(self.tags),
            "score": self.score,
            "answersCount": self.answers_count,
            "slug": self.slug,
        }
        payload[content_field_key] = self.content_md
        return payload


class CreatedPost(BaseModel):
    """Resultado de un flujo de creación exitoso."""

    slug: str
    path: str
    candidate: OperationCandidate
    record: dict[str, Any] = Field(default_factory=dict)


class LeaderboardRow(BaseModel):
    """Contribución agregada de un usuario."""

    owner: str
    display: str
    posts: int = 0
    answers: int = 0
    accepted: int = 0
    post_score: int = 0
    answer_score: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_score(self) -> int:
        return self.post_score + self.answer_score

    @property
    def contributions(self) -> int:
        return self.posts + self.answers


class Leaderboard(BaseModel):
    """Ranking de contribuidores.

    `missing` lista las colecciones que no se pudieron leer bajo ningún tier;
    el ranking se calcula igualmente con lo disponible.
    """

    rows: list[LeaderboardRow] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    missing: list[str] = Field(default_factory=list)
