from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")


class RouteRecord(BaseModel):
    """
    One discovered HTTP endpoint.

    `method`, `routePath` and `handler` are the contract downstream consumers
    rely on. `explanation` is only ever filled in by an enrichment step.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    method: HttpMethod
    route_path: str = Field(alias="routePath")
    handler: str = ""
    explanation: Optional[str] = None

    # provenance, not part of the payload
    file_path: str = ""
    line: int = 0

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def to_payload(self) -> dict[str, str]:
        out = {"method": self.method, "routePath": self.route_path, "handler": self.handler}
        if self.explanation is not None:
            out["explanation"] = self.explanation
        return out


class DetectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str = "unknown"
    framework: str = "unknown"
    marker: Optional[str] = None  # marker file that decided the framework


class ModelDecl(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str  # storage namespace: mongoose, sequelize, prisma
    fields: tuple[str, ...] = ()


class ControllerDecl(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    methods: tuple[str, ...] = ()


class TypeDecl(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    properties: tuple[str, ...] = ()


class DeclarationSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    models: tuple[ModelDecl, ...] = ()
    controllers: tuple[ControllerDecl, ...] = ()
    types: tuple[TypeDecl, ...] = ()

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "models": [
                {"name": m.name, "type": m.type, "fields": list(m.fields)} for m in self.models
            ],
            "controllers": [
                {"name": c.name, "methods": list(c.methods)} for c in self.controllers
            ],
            "types": [
                {"name": t.name, "properties": list(t.properties)} for t in self.types
            ],
        }
