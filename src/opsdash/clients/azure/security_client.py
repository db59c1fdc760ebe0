"""Azure Security Center (Defender for Cloud) client."""

from typing import Any, Dict, List

from azure.core.exceptions import AzureError
from azure.mgmt.security import SecurityCenter

from opsdash.core.base_client import AzureSdkClient
from opsdash.core.exceptions import UpstreamFetchException
from opsdash.mappers.resource_mapper import ResourceDataMapper
from opsdash.models.security_models import SecurityAssessment, SecurityScore

UNHEALTHY_SHOWN = 10


class SecurityClient(AzureSdkClient):
    """Reads security assessments for the subscription and scores them."""

    source = "Azure Security Center"

    def __init__(self, credential, subscription_id: str, config: Dict[str, Any], sdk_client: Any = None):
        super().__init__(credential, subscription_id, config, "SecurityClient", sdk_client=sdk_client)
        self.mapper = ResourceDataMapper()

    def _create_client(self):
        return SecurityCenter(credential=self.credential, subscription_id=self.subscription_id)

    async def health_check(self) -> bool:
        return self._connected and self._client is not None

    async def list_assessments(self) -> List[SecurityAssessment]:
        self._ensure_connected()
        try:
            raw = await self._call(lambda: list(self._client.assessments.list(self.scope)))
        except AzureError as e:
            self.logger.error("Failed to list security assessments", error=str(e))
            raise UpstreamFetchException(self.source, getattr(e, "message", None) or str(e), getattr(e, "status_code", None))
        return [self.mapper.map_assessment(item) for item in raw]

    async def get_security_score(self) -> SecurityScore:
        """Score = healthy / (healthy + unhealthy), as a rounded percentage."""
        assessments = await self.list_assessments()
        counts = {"Healthy": 0, "Unhealthy": 0, "NotApplicable": 0}
        for assessment in assessments:
            if assessment.status in counts:
                counts[assessment.status] += 1

        applicable = counts["Healthy"] + counts["Unhealthy"]
        # half-up rounding, 2 of 3 healthy -> 67
        score = int(counts["Healthy"] / applicable * 100 + 0.5) if applicable else 0

        self.logger.info("Computed security score", score=score, assessments=len(assessments))
        return SecurityScore(
            enabled=True,
            score_percentage=score,
            healthy=counts["Healthy"],
            unhealthy=counts["Unhealthy"],
            not_applicable=counts["NotApplicable"],
            total_assessments=len(assessments),
            assessments=[a for a in assessments if a.status == "Unhealthy"][:UNHEALTHY_SHOWN],
        )
