"""Project artifact model that records the archives produced by a run."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import json

EJB_TYPE = "ejb"
EJB_CLIENT_TYPE = "ejb-client"


@dataclass(frozen=True, slots=True)
class AttachedArtifact:
    type: str
    classifier: str | None
    path: Path


@dataclass(slots=True)
class ProjectArtifacts:
    """Primary artifact file plus supplemental artifacts attached by classifier."""

    primary_file: Path | None = None
    primary_type: str = EJB_TYPE
    attached: List[AttachedArtifact] = field(default_factory=list)

    def has_primary_file(self) -> bool:
        """Return ``True`` when a primary artifact file is already set and exists."""

        if self.primary_file is None:
            return False
        return self.primary_file.is_file()

    def set_primary(self, path: Path) -> None:
        self.primary_file = Path(path)

    def attach(self, artifact_type: str, classifier: str | None, path: Path) -> AttachedArtifact:
        artifact = AttachedArtifact(type=artifact_type, classifier=classifier, path=Path(path))
        self.attached.append(artifact)
        return artifact

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "primary": {
                "type": self.primary_type,
                "path": str(self.primary_file) if self.primary_file else None,
            },
            "attached": [
                {
                    "type": artifact.type,
                    "classifier": artifact.classifier,
                    "path": str(artifact.path),
                }
                for artifact in self.attached
            ],
        }

    def write_json(self, path: Path) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_mapping(), indent=2) + "\n", encoding="utf-8")


__all__ = [
    "AttachedArtifact",
    "EJB_CLIENT_TYPE",
    "EJB_TYPE",
    "ProjectArtifacts",
]
