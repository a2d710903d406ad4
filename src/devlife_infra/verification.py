"""Post-setup verification of service reachability and seeded data."""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from .config import ServiceConfig, ServiceKind
from .datastores import DatastoreClient
from .exceptions import DatastoreError
from .models import ServiceVerification

logger = logging.getLogger(__name__)


class Verifier:
    def __init__(self, clients: Mapping[str, DatastoreClient]) -> None:
        self._clients = clients

    def verify(self, services: Sequence[ServiceConfig]) -> List[ServiceVerification]:
        return [self.verify_service(service) for service in services]

    def verify_service(self, service: ServiceConfig) -> ServiceVerification:
        client = self._clients[service.name]
        if not client.ping():
            logger.warning("Verification probe failed", extra={"service": service.name})
            return ServiceVerification(
                service=service.name,
                kind=service.kind.value,
                reachable=False,
                total=0,
                counts={target: 0 for target in service.verify},
                errors=("connection failed",),
            )

        errors: List[str] = []
        try:
            total = client.total()
        except DatastoreError as exc:
            errors.append(f"total: {exc}")
            total = 0
        else:
            if total == 0 and service.kind is not ServiceKind.REDIS:
                errors.append("no tables or collections found")

        counts: Dict[str, int] = {}
        for target in service.verify:
            try:
                counts[target] = client.count(target)
            except DatastoreError as exc:
                errors.append(f"{target}: {exc}")
                counts[target] = 0

        logger.info(
            "Service verified",
            extra={"service": service.name, "total": total, "counts": counts, "errors": errors},
        )
        return ServiceVerification(
            service=service.name,
            kind=service.kind.value,
            reachable=True,
            total=total,
            counts=counts,
            errors=tuple(errors),
        )
