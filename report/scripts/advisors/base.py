"""
Base class for advisors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from data_models import Impact, Recommendation, Severity, SnapshotSet


@dataclass
class AdvisorFindings:
    """Recommendations plus the intermediate analysis an advisor produced."""
    recommendations: List[Recommendation] = field(default_factory=list)
    insights: Dict[str, Any] = field(default_factory=dict)


class BaseAdvisor(ABC):
    """
    Abstract base class for all advisors.

    Advisors are stateless: advise() reads the snapshot set and returns new
    findings, it never mutates the snapshots or the advisor itself.
    """

    def __init__(self, name: str, category: str):
        self.name = name
        self.category = category

    @abstractmethod
    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        """
        Evaluate the advisor's rules against one snapshot set.

        Returns AdvisorFindings, with an empty recommendation list when
        nothing needs attention.
        """

    def create_recommendation(
        self,
        severity: Severity,
        title: str,
        description: str,
        impact: Impact,
        action: str,
        priority: int,
        node_id: Optional[str] = None,
        specifics: Optional[Dict[str, Any]] = None,
        category: Optional[str] = None,
    ) -> Recommendation:
        """Create a Recommendation in this advisor's category."""
        return Recommendation(
            severity=severity,
            category=category or self.category,
            title=title,
            description=description,
            impact=impact,
            action=action,
            priority=priority,
            node_id=node_id,
            specifics=specifics,
        )
