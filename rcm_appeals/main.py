from .agent.enhancement import AppealEnhancer
from .config import get_settings
from .denial_scenarios import TEMPLATES, get_scenario, list_scenarios
from .integrations.json_store import JsonFileAppealStore
from .lifecycle import DenialAppealService

import asyncio
import logging


DEMO_ACTOR = "billing.specialist@demo"


# Console output helper
def log_status(message: str) -> None:
    """Print formatted status message to console."""
    print(f"Appeals Engine: {message}")


async def main(scenario_id: str):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    scenario = get_scenario(scenario_id)
    if scenario is None:
        print(f"Unknown scenario {scenario_id}. Available: {', '.join(list_scenarios())}")
        return

    store = JsonFileAppealStore(settings.data_dir / "appeals.json")
    service = DenialAppealService(
        store=store,
        enhancer=AppealEnhancer.from_settings(settings),
        settings=settings,
    )
    for template in TEMPLATES:
        if store.get_template(template.id) is None:
            service.add_template(template)

    print("=" * 50)
    print(f"Running denial scenario {scenario_id}")
    print("=" * 50)

    denial_id = scenario["denial"]["id"]
    denial = store.get_denial(denial_id)
    if denial is None:
        denial = service.create_denial(scenario["denial"], actor_id=DEMO_ACTOR)
        log_status(f"Recorded denial {denial.id} ({denial.reason_code}), priority {denial.priority}")
    else:
        log_status(f"Denial {denial.id} already on file with status {denial.status}")

    if denial.is_terminal:
        log_status("Denial is closed; nothing to appeal.")
        return

    generated = await service.generate_appeal(denial.id, scenario["options"], actor_id=DEMO_ACTOR)
    log_status(f"Generated appeal {generated.appeal_number} (confidence {generated.ai_confidence})")
    print("-" * 50)
    print(generated.subject_line)
    print()
    print(generated.letter_body)
    print("-" * 50)
    log_status(f"Required documents: {', '.join(generated.required_documents)}")
    log_status(f"Payer response due by {generated.response_deadline.isoformat()}")

    service.submit_appeal(generated.appeal_id, {"submission_method": "portal"}, actor_id=DEMO_ACTOR)
    log_status("Appeal submitted via portal")

    appeal = service.record_outcome(generated.appeal_id, scenario["outcome"], actor_id=DEMO_ACTOR)
    denial = service.get_denial(denial.id)
    log_status(f"Outcome {appeal.status} for {appeal.outcome_amount}; denial is now {denial.status}")

    print("\nAudit trail:")
    for entry in service.get_audit_trail(denial_id=denial.id):
        print(f"  {entry.timestamp.isoformat()}  {entry.action_type:<18} {entry.description}")

    print("\nWork queue:")
    for queued in service.work_queue():
        print(f"  [{queued.priority:<8}] {queued.id}  {queued.reason_code}  ${queued.denied_amount}")

    stats = service.appeal_stats()
    print(
        f"\nAppeals: {stats.total} total, {stats.drafts} draft, {stats.submitted} submitted, "
        f"{stats.won} won, {stats.partial} partial, {stats.denied} denied; recovered ${stats.total_recovered}"
    )


if __name__ == "__main__":
    import sys
    if len(sys.argv) > 1:
        scenario_id = sys.argv[1]
        asyncio.run(main(scenario_id))
    else:
        print("No scenario id provided.")
