"""Provider application wizard: business, services, verification, banking, review"""

from typing import Optional

from ...config import MIN_PROVIDER_SERVICES
from ...store import SERVER_TIMESTAMP
from ...wizard import WizardFlow, WizardStep

PROVIDER_FLOW_NAME = "provider_application"

APPLICATION_FIELDS = (
    "businessName",
    "businessType",
    "ein",
    "ownerName",
    "phone",
    "email",
    "serviceArea",
    "services",
    "yearsExperience",
    "backgroundCheck",
    "bankAccountHolder",
    "routingNumberEncrypted",
    "routingNumberLast4",
    "bankAccountEncrypted",
    "bankAccountLast4",
)


def has_business_info(draft: dict) -> bool:
    return all(bool(draft.get(name)) for name in ("businessName", "ein", "ownerName"))


def has_enough_services(draft: dict) -> bool:
    return len(set(draft.get("services") or [])) >= MIN_PROVIDER_SERVICES


def has_background_consent(draft: dict) -> bool:
    return draft.get("backgroundCheck") is True


def build_application_record(
    draft: dict, user_id: str, email: Optional[str] = None, coordinates: Optional[dict] = None
) -> dict:
    record = {name: draft.get(name) for name in APPLICATION_FIELDS}
    record["email"] = record["email"] or email
    record["services"] = list(draft.get("services") or [])
    record.update(
        {
            "coordinates": coordinates,
            "status": "pending",
            "submittedAt": SERVER_TIMESTAMP,
            "approvedAt": None,
            "userId": user_id,
        }
    )
    return record


PROVIDER_FLOW = WizardFlow(
    name=PROVIDER_FLOW_NAME,
    steps=(
        WizardStep("business", has_business_info),
        WizardStep("services", has_enough_services),
        WizardStep("verification", has_background_consent),
        WizardStep("banking"),
        WizardStep("review"),
    ),
    build_record=build_application_record,
)
