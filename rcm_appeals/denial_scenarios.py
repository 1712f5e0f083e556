"""
Denial data for the demo runner scenarios.

Scenario A: MRI Lumbar Spine (CO-50) - Medical necessity, appeal with clinical justification
Scenario B: Epidural steroid injection (CO-197) - Missing authorization, no justification
Scenario C: Office visit (CO-16) - Coding error, no patient on file, falls back to default template

"""

from datetime import date, timedelta

from .models import AppealTemplate, ClaimSummary, PatientSummary


TEMPLATES = [
    AppealTemplate(
        id="TPL-MEDNEC",
        name="Medical Necessity Appeal",
        description="First-level appeal for CO-50 style medical necessity denials",
        subject_template="Medical Necessity Appeal - Claim {{claim_number}} - {{patient_name}}",
        body_template="""{{practice_name}}
{{practice_address}}

{{current_date}}

{{payer_name}} Appeals Department

RE: Medical Necessity Appeal
Patient: {{patient_name}} (DOB {{patient_dob}})
Member ID: {{member_id}}
Claim Number: {{claim_number}}
Date of Service: {{service_date}}
CPT: {{cpt_code}} {{cpt_description}}
ICD-10: {{icd_codes}}

Dear Medical Director:

The claim above was denied on {{denial_date}} under reason code {{reason_code}} ({{reason_description}}). The service was medically necessary for this patient.

{{clinical_justification}}

We request reprocessing of the claim and payment of {{denied_amount}}.

Sincerely,
{{provider_name}}, NPI {{provider_npi}}
""",
        denial_category="medical_necessity",
        is_default=True,
        required_attachments=["Copy of denial/EOB", "Office notes for date of service", "Letter of medical necessity"],
        optional_attachments=["Relevant imaging or lab results", "Peer-reviewed literature"],
    ),
    AppealTemplate(
        id="TPL-AUTH",
        name="Authorization Appeal",
        subject_template="Authorization Appeal - Claim {{claim_number}}",
        body_template="""{{current_date}}

{{payer_name}}

RE: Claim {{claim_number}} for {{patient_name}}, Member ID {{member_id}}

The claim for CPT {{cpt_code}} on {{service_date}} was denied with reason code {{reason_code}}. Authorization was obtained or was not required for this service; supporting documentation is enclosed.

{{additional_notes}}

{{provider_name}}
""",
        denial_category="authorization",
        is_default=True,
        required_attachments=["Copy of denial/EOB", "Authorization approval or payer call reference"],
    ),
    AppealTemplate(
        id="TPL-GENERAL",
        name="General Reconsideration",
        subject_template="Request for Reconsideration - Claim {{claim_number}}",
        body_template="""{{current_date}}

{{payer_name}}

We request reconsideration of claim {{claim_number}} (reason code {{reason_code}}, denied {{denied_amount}}).

{{additional_notes}}

{{provider_name}}
{{practice_phone}}
""",
        denial_category=None,
        is_default=True,
        required_attachments=["Copy of original claim", "Copy of denial/EOB"],
    ),
]


def _scenarios() -> dict:
    today = date.today()
    return {
        "DENIAL-SCENARIO-A": {
            "denial": {
                "id": "DENIAL-SCENARIO-A",
                "claim": ClaimSummary(
                    id="CLM-1001",
                    claim_number="2024-88431",
                    provider_name="Dr. Sarah Chen",
                    provider_npi="1234567893",
                    payer_name="Blue Cross Blue Shield",
                ),
                "patient": PatientSummary(
                    id="PAT003",
                    first_name="Robert",
                    last_name="Thompson",
                    date_of_birth=date(1966, 4, 12),
                    member_id="BCB123456789",
                ),
                "billed_amount": "1450.00",
                "denied_amount": "1450.00",
                "reason_code": "CO-50",
                "reason_description": "Not deemed a medical necessity by the payer",
                "classified_category": "medical_necessity",
                "cpt_code": "72148",
                "cpt_description": "MRI lumbar spine without contrast",
                "icd_codes": ["M54.5", "M54.16"],
                "service_date": today - timedelta(days=40),
                "denial_date": today - timedelta(days=10),
                "appeal_deadline": today + timedelta(days=5),
            },
            "options": {
                "clinical_justification": (
                    "Patient completed 12 sessions of physical therapy and 6 weeks of NSAID therapy "
                    "without relief and developed new L5 dermatomal numbness with EHL weakness. "
                    "MRI was required to evaluate for nerve root compression."
                ),
                "practice_info": {"name": "Lakeside Spine Clinic", "address": "200 Lake St, Springfield", "phone": "555-0100"},
            },
            "outcome": {"outcome": "won", "amount": "1450.00", "notes": "Overturned on first-level review"},
        },
        "DENIAL-SCENARIO-B": {
            "denial": {
                "id": "DENIAL-SCENARIO-B",
                "claim": ClaimSummary(
                    id="CLM-1002",
                    claim_number="2024-90211",
                    provider_name="Dr. James Wilson",
                    provider_npi="1987654321",
                    payer_name="Aetna",
                ),
                "patient": PatientSummary(
                    id="PAT005",
                    first_name="Michael",
                    last_name="Anderson",
                    date_of_birth=date(1972, 9, 3),
                    member_id="AET555000111",
                ),
                "billed_amount": "2200.00",
                "denied_amount": "1800.00",
                "reason_code": "co-197",
                "reason_description": "Precertification/authorization absent",
                "classified_category": "authorization",
                "cpt_code": "62322",
                "icd_codes": ["M54.16", "M54.41"],
                "service_date": today - timedelta(days=30),
                "denial_date": today - timedelta(days=12),
            },
            "options": {
                "additional_notes": "Authorization reference AUTH-778812 was issued by phone on the date of service.",
            },
            "outcome": {"outcome": "partial", "amount": "900.00", "notes": "Paid at reduced rate"},
        },
        "DENIAL-SCENARIO-C": {
            "denial": {
                "id": "DENIAL-SCENARIO-C",
                "claim_id": "CLM-1003",
                "payer_name": "UnitedHealthcare",
                "denied_amount": "185.00",
                "reason_code": "CO-16",
                "reason_description": "Claim lacks information needed for adjudication",
                "classified_category": "coding_error",
                "remark_codes": ["MA130", "N290"],
                "cpt_code": "99214",
                "denial_date": today - timedelta(days=3),
            },
            "options": {},
            "outcome": {"outcome": "denied", "notes": "Upheld; corrected claim required"},
        },
    }


def get_scenario(scenario_id: str) -> dict:
    """Get scenario by ID."""
    return _scenarios().get(scenario_id, None)


def list_scenarios() -> list:
    return sorted(_scenarios().keys())
