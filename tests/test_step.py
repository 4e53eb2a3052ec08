import pytest

from safepkt.step import (
    Step,
    StepInVerificationPlan,
    UnknownStepError,
    VerificationStepsCollection,
    VerificationTarget,
    change_case,
    which_step,
)


def _provider(prefixed_hash, bitcode, flags):
    return " ".join(part for part in (prefixed_hash, bitcode, flags or "") if part)


def _steps():
    return {
        "program_verification": Step("program_verification", _provider, None),
        "uploaded_sources_listing": Step("uploaded_sources_listing", _provider),
    }


def test_empty_flags_become_none():
    assert Step("s", _provider, "").flags is None


def test_non_empty_flags_are_kept():
    assert Step("s", _provider, "--help").flags == "--help"


def test_step_provider_is_callable_with_flags():
    step = Step("s", _provider, "--help")
    assert step.step_provider("a", "b", step.flags) == _provider("a", "b", "--help")


def test_change_case():
    assert change_case("program-verification") == "program_verification"


def test_change_case_leaves_snake_case_alone():
    assert change_case("source_restoration") == "source_restoration"


def test_which_step_accepts_kebab_case():
    steps = _steps()
    plan = which_step(steps, "program-verification", "abc123")
    assert plan == StepInVerificationPlan("abc123", steps["program_verification"])
    assert plan.step.name == "program_verification"


def test_which_step_unknown():
    with pytest.raises(UnknownStepError) as info:
        which_step(_steps(), "no-such-step", "abc123")
    assert info.value.name == "no_such_step"


def test_collection_returns_step():
    steps = _steps()
    collection = VerificationStepsCollection(steps)
    assert collection.step("uploaded_sources_listing") is steps["uploaded_sources_listing"]


def test_collection_unknown_step():
    with pytest.raises(UnknownStepError):
        VerificationStepsCollection(_steps()).step("missing")


def test_verification_target_fields():
    target = VerificationTarget("program_fuzzing", "abc123")
    assert (target.step, target.project_id) == ("program_fuzzing", "abc123")