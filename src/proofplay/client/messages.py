"""Message schemas exchanged with the proof engine."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from proofplay.game.session import GameStatus
from proofplay.game.timeline import ProofState


class RequestName(str, Enum):
    """Commands understood by the proof engine."""

    START = "START"                  # mode/ruleSet/formulaId/useTheorem -> {id}
    RESUME = "RESUME"                # id -> ack
    GAMESTATE = "GAMESTATE"          # id -> proof state
    APPLYRULE = "APPLYRULE"          # id/exprId/ruleId/context -> proof state
    PREVIOUS = "PREVIOUS"            # id -> proof state
    NEXT = "NEXT"                    # id -> proof state
    TIMELINE = "TIMELINE"            # id/index -> proof state
    CREATETHEOREM = "CREATETHEOREM"  # id/start/end -> ack
    RULESLIST = "RULESLIST"          # id -> {rules}
    DELETE = "DELETE"                # id -> ack


def build_path(*params: Any) -> str:
    """Join request parameters into a path such as /12/3/7/0."""
    parts = []
    for param in params:
        if isinstance(param, bool):
            parts.append("true" if param else "false")
        elif isinstance(param, Enum):
            parts.append(str(param.value))
        else:
            parts.append(str(param))
    return "/" + "/".join(parts)


class ClientRequest(BaseModel):
    """Request sent from the client to the proof engine."""

    request: RequestName = Field(description="Name of the command")
    path: str = Field(default="/", description="Parameters joined as a path")


class ServerResponse(BaseModel):
    """Reply from the proof engine to a single request."""

    status: Literal["success", "error"] = Field(description="Outcome of the request")
    data: dict[str, Any] = Field(default_factory=dict, description="Response payload")
    message: str = Field(default="", description="Human readable detail, set on errors")

    @property
    def is_success(self) -> bool:
        return self.status == "success"


class StartPayload(BaseModel):
    """Payload of a START reply."""

    id: int | str = Field(description="Id of the game created on the server")


class ProofStatePayload(BaseModel):
    """Payload of every reply that carries a proof state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str = Field(description="Human readable rendering of the formula")
    math: Any = Field(default=None, description="Proof engine representation")
    game_status: GameStatus = Field(
        default=GameStatus.IN_PROGRESS,
        alias="gameStatus",
        description="Whether the goal has been reached",
    )

    def to_state(self) -> ProofState:
        return ProofState(text=self.text, math_payload=self.math)


class RulesPayload(BaseModel):
    """Payload of a RULESLIST reply: rule descriptions grouped by category."""

    rules: list[dict[str, list[str]]] = Field(default_factory=list)

    def by_category(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for group in self.rules:
            for category, descriptions in group.items():
                grouped.setdefault(category, []).extend(descriptions)
        return grouped

