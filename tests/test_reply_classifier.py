import pytest

from letter_agents.services.models import ReplyVerdict
from letter_agents.services.reply_classifier import (
    ReplyClassifier,
    SalutationClassifier,
    StructuralClassifier,
    build_classifier,
)
from tests.fakes import SAMPLE_LETTER


def test_salutation_triggers_full_replacement():
    assert SalutationClassifier().classify(SAMPLE_LETTER) is ReplyVerdict.FULL_REPLACEMENT


def test_reply_without_salutation_is_incidental():
    reply = "Sure, here's a tighter version: ..."
    assert SalutationClassifier().classify(reply) is ReplyVerdict.INCIDENTAL


def test_quoted_salutation_still_counts_as_replacement():
    reply = 'Your letter opens with "To Whom It May Concern," which is standard.'
    assert SalutationClassifier().classify(reply) is ReplyVerdict.FULL_REPLACEMENT


def test_classification_is_stable_for_same_text():
    classifier = SalutationClassifier()
    verdicts = {classifier.classify("To Whom It May Concern, hi") for _ in range(5)}
    assert verdicts == {ReplyVerdict.FULL_REPLACEMENT}


def test_structural_classifier_requires_every_marker():
    classifier = StructuralClassifier()
    assert classifier.classify(SAMPLE_LETTER) is ReplyVerdict.FULL_REPLACEMENT
    assert classifier.classify("To Whom It May Concern, On the one hand, nothing else") is ReplyVerdict.INCIDENTAL


def test_build_classifier_by_name():
    assert isinstance(build_classifier("structural"), StructuralClassifier)
    assert isinstance(build_classifier("salutation"), ReplyClassifier)
    with pytest.raises(KeyError):
        build_classifier("llm-judge")
