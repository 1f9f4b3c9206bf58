"""Unit tests for the lexical classifier."""

import pytest

from narrativeshift.classify import Classifier, classify
from narrativeshift.lexicon import Lexicon


class TestClassify:
    def test_empty_text(self) -> None:
        c = classify("")
        assert c.polarity == 0.0
        assert c.magnitude == 0.0
        assert c.migration_intent is False
        assert c.target_platform is None

    def test_kyc_post(self) -> None:
        c = classify(
            "Discord forcing biometric KYC is insane. "
            "Moving my entire community to Telegram tonight."
        )
        assert c.migration_intent is True
        assert c.target_platform == "telegram"
        # 1 positive ("moving") vs 2 negative ("biometric", "kyc") over 13 words
        assert c.polarity == pytest.approx(-1 / 1.3)
        assert c.magnitude == pytest.approx(0.6)

    def test_polarity_clamped_high(self) -> None:
        c = classify("I love this, best upgrade, excited")
        assert c.polarity == 1.0
        assert c.magnitude == pytest.approx(0.8)

    def test_polarity_and_magnitude_clamped_low(self) -> None:
        c = classify("hate terrible awful worst horrible disgusting")
        assert c.polarity == -1.0
        assert c.magnitude == 1.0

    def test_long_post_dilutes_polarity(self) -> None:
        text = "love " + "word " * 29  # 30 tokens
        assert classify(text).polarity == pytest.approx(1 / 3)

    def test_substring_matching(self) -> None:
        assert classify("we switched last week").migration_intent is True
        assert classify("leftover pizza").migration_intent is True
        assert classify("nothing to see").migration_intent is False

    def test_platform_follows_lexicon_order(self) -> None:
        assert classify("signal or TELEGRAM?").target_platform == "telegram"
        assert classify("trying Mastodon").target_platform == "mastodon"

    def test_bounds_hold_for_odd_inputs(self) -> None:
        for text in ["   ", "quit " * 200, "KYC!!!", "\n\t", "🔥 moving 🔥"]:
            c = classify(text)
            assert -1.0 <= c.polarity <= 1.0
            assert 0.0 <= c.magnitude <= 1.0


class TestCustomLexicon:
    def test_alternate_lists(self) -> None:
        lex = Lexicon(
            positive=["great"],
            negative=["bad"],
            migration=["bye"],
            platforms=["zulip"],
        )
        c = Classifier(lex).classify("Great, bye to Zulip")
        assert c.polarity == 1.0
        assert c.migration_intent is True
        assert c.target_platform == "zulip"

    def test_default_terms_ignored(self) -> None:
        lex = Lexicon(positive=["great"], negative=[], migration=[], platforms=[])
        c = Classifier(lex).classify("moving to telegram")
        assert c.migration_intent is False
        assert c.target_platform is None
        assert c.polarity == 0.0
