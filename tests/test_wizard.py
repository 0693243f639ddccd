import pytest

from marketplace.wizard import SubmissionFailed, Wizard, WizardError, WizardFlow, WizardStep


def _build(draft, **context):
    return {**draft, **context}


FLOW = WizardFlow(
    name="demo",
    steps=(
        WizardStep("name", lambda d: bool(d.get("name"))),
        WizardStep("extras"),
        WizardStep("confirm"),
    ),
    build_record=_build,
)


def test_advance_requires_step_predicate():
    wizard = Wizard(FLOW)
    assert wizard.advance() is False
    assert wizard.current_step == 1

    wizard.update({"name": "Shine Co"})
    assert wizard.advance() is True
    assert wizard.current_step == 2


def test_cannot_advance_past_terminal_step():
    wizard = Wizard(FLOW, current_step=3, draft={"name": "x"})
    assert wizard.is_terminal
    assert wizard.can_advance() is False
    assert wizard.advance() is False
    assert wizard.current_step == 3


def test_retreat_stops_at_first_step():
    wizard = Wizard(FLOW, current_step=2, draft={"name": "x"})
    assert wizard.retreat() is True
    assert wizard.retreat() is False
    assert wizard.current_step == 1
    assert wizard.draft == {"name": "x"}


def test_out_of_range_step_rejected():
    with pytest.raises(WizardError):
        Wizard(FLOW, current_step=4)
    with pytest.raises(WizardError):
        Wizard(FLOW, current_step=0)


def test_submit_only_from_terminal_step():
    wizard = Wizard(FLOW, current_step=2, draft={"name": "x"})
    with pytest.raises(WizardError):
        wizard.submit(lambda record: "id-1")


def test_submit_rejects_incomplete_draft():
    wizard = Wizard(FLOW, current_step=3, draft={})
    with pytest.raises(WizardError, match="name"):
        wizard.submit(lambda record: "id-1")


def test_submit_persists_record_and_resets():
    saved = []
    wizard = Wizard(FLOW, current_step=3, draft={"name": "Shine Co"})

    result = wizard.submit(lambda record: saved.append(record) or "id-1", owner="u1")

    assert result == "id-1"
    assert saved == [{"name": "Shine Co", "owner": "u1"}]
    assert wizard.current_step == 1
    assert wizard.draft == {}


def test_persist_failure_keeps_state():
    wizard = Wizard(FLOW, current_step=3, draft={"name": "Shine Co"})

    def boom(record):
        raise RuntimeError("write failed")

    with pytest.raises(SubmissionFailed) as exc_info:
        wizard.submit(boom)

    assert exc_info.value.message == "Something went wrong. Please try again."
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert wizard.current_step == 3
    assert wizard.draft == {"name": "Shine Co"}


def test_snapshot_and_restore():
    wizard = Wizard(FLOW, current_step=2, draft={"name": "x"})
    snapshot = wizard.snapshot()
    assert snapshot["stepName"] == "extras"
    assert snapshot["totalSteps"] == 3
    assert snapshot["canAdvance"] is True

    restored = Wizard.from_dict(FLOW, wizard.to_dict())
    assert restored.current_step == 2
    assert restored.draft == {"name": "x"}


def test_from_dict_falls_back_to_fresh_wizard():
    assert Wizard.from_dict(FLOW, None).current_step == 1
    assert Wizard.from_dict(FLOW, {"flow": "other", "currentStep": 2}).current_step == 1
    assert Wizard.from_dict(FLOW, {"flow": "demo", "currentStep": 9, "draft": {"a": 1}}).current_step == 1
