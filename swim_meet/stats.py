"""
Per-provider statistics computed from stored responses.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable

from .models import Response, ResponseStatus

AWARD_TIERS = ("gold", "silver", "bronze")


@dataclass
class ProviderStats:
    provider: str
    total_responses: int = 0
    complete_responses: int = 0
    awards: Dict[str, int] = field(default_factory=lambda: {tier: 0 for tier in AWARD_TIERS})
    verified_responses: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_responses == 0:
            return 0.0
        return round(self.complete_responses / self.total_responses * 100, 1)

    def record(self, response: Response):
        self.total_responses += 1
        if response.status == ResponseStatus.COMPLETE:
            self.complete_responses += 1
        if response.award in self.awards:
            self.awards[response.award] += 1
        if response.verification_results:
            self.verified_responses += 1

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "total_responses": self.total_responses,
            "complete_responses": self.complete_responses,
            "success_rate": self.success_rate,
            "gold_awards": self.awards["gold"],
            "silver_awards": self.awards["silver"],
            "bronze_awards": self.awards["bronze"],
            "verified_responses": self.verified_responses,
        }

    def get_summary(self) -> str:
        lines = [
            f"{self.provider}:",
            f"  Responses: {self.complete_responses}/{self.total_responses} ({self.success_rate}%)",
        ]
        if any(self.awards.values()):
            medals = ", ".join(f"{tier} {count}" for tier, count in self.awards.items() if count)
            lines.append(f"  Awards: {medals}")
        if self.verified_responses:
            lines.append(f"  Verified: {self.verified_responses}")
        return "\n".join(lines)


def compute_provider_stats(responses: Iterable[Response]) -> list[ProviderStats]:
    """Group responses by provider, busiest provider first."""
    by_provider: Dict[str, ProviderStats] = {}
    for response in responses:
        stats = by_provider.get(response.provider)
        if stats is None:
            stats = by_provider[response.provider] = ProviderStats(provider=response.provider)
        stats.record(response)

    return sorted(by_provider.values(), key=lambda s: (-s.total_responses, s.provider))
