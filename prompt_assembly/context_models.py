# prompt_assembly/context_models.py
"""Data models used for brief assembly."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ContextSection:
    """One block of a brief. Higher ``priority`` survives compression longer."""

    name: str
    text: str
    priority: int = 5
    can_truncate: bool = True


@dataclass
class CompressionStats:
    original_length: int
    compressed_length: int
    original_section_count: int
    compressed_section_count: int
    truncated_section_count: int = 0
    dropped_section_count: int = 0
    original_tokens: int = 0
    compressed_tokens: int = 0

    @property
    def compression_ratio(self) -> float:
        if self.original_length == 0:
            return 1.0
        return self.compressed_length / self.original_length


@dataclass
class BriefRequest:
    """Parameters describing the brief to assemble."""

    task: str = "Write the next chapter of the novel."
    role: str = "You are a serialized fiction author continuing an ongoing novel."
    constraints: list[str] = field(default_factory=list)
    output_format: str | None = None
    chapter_number: int | None = None
    max_length: int | None = None


@dataclass
class AssembledBrief:
    text: str
    sections: list[ContextSection]
    stats: CompressionStats
