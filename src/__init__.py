"""Course AI policy editor package."""

from .models.policy import PolicyDocument, Section, Subsection
from .editor.session import EditorSession

__all__ = ["PolicyDocument", "Section", "Subsection", "EditorSession"]
