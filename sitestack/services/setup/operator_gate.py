from __future__ import annotations

from abc import ABC, abstractmethod

from sitestack.models.provisioning import ProvisioningPlan


class OperatorGate(ABC):
    """The points where a human has to agree before the run goes on."""

    @abstractmethod
    def confirm(self, question: str) -> bool:
        """Ask a yes/no question that defaults to "no"."""

        raise NotImplementedError

    @abstractmethod
    def approve_plan(self, plan: ProvisioningPlan) -> bool:
        """Show the plan and ask whether to go ahead (defaults to "yes")."""

        raise NotImplementedError

    @abstractmethod
    def acknowledge(self, message: str) -> None:
        """Show `message` and block until the operator has read it."""

        raise NotImplementedError

    def certificate_wait(self, seconds: int) -> None:
        """Progress of the issuance wait; silent unless overridden."""
