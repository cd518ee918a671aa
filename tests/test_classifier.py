"""Tests for query intent classification."""

import pytest

from memory_assistant.services.classifier import PhraseSets, QueryClassifier


@pytest.fixture
def classifier() -> QueryClassifier:
    return QueryClassifier()


class TestPersonalInfo:
    @pytest.mark.parametrize(
        "query",
        [
            "Que sais-tu de moi ?",
            "Peux-tu me donner toutes mes mémoires",
            "LISTE MES MÉMOIRES",
            "Qu’est-ce que tu connais sur moi",
            "What do you know about me?",
            "please list all my memories",
        ],
    )
    def test_detected_anywhere_in_query(self, classifier, query):
        result = classifier.classify(query)

        assert result.is_personal_info
        assert not result.skip_retrieval

    def test_greeting_with_personal_request_still_retrieves(self, classifier):
        result = classifier.classify("Bonjour, que sais-tu de moi ?")

        assert result.is_personal_info
        assert not result.is_simple_greeting
        assert not result.skip_retrieval


class TestTrivialQueries:
    @pytest.mark.parametrize("query", ["bonjour", "Salut !", "  hello  ", "hey!!", "Bonne nuit."])
    def test_greetings_skip_retrieval(self, classifier, query):
        result = classifier.classify(query)

        assert result.is_simple_greeting
        assert result.skip_retrieval

    @pytest.mark.parametrize("query", ["Comment ça va ?", "ça va", "How are you doing?"])
    def test_smalltalk_skips_retrieval(self, classifier, query):
        result = classifier.classify(query)

        assert result.is_simple_smalltalk
        assert result.skip_retrieval

    @pytest.mark.parametrize("query", ["Qui es-tu ?", "aide", "What can you do?"])
    def test_meta_questions_skip_retrieval(self, classifier, query):
        result = classifier.classify(query)

        assert result.is_general_meta
        assert result.skip_retrieval

    @pytest.mark.parametrize(
        "query",
        ["bonjour, quel temps fait-il à Paris ?", "hi there, what did I plan for Monday", "Hello world program"],
    )
    def test_greeting_prefix_alone_is_not_trivial(self, classifier, query):
        result = classifier.classify(query)

        assert not result.is_simple_greeting
        assert not result.skip_retrieval

    def test_ordinary_question(self, classifier):
        result = classifier.classify("Quel est le nom de mon chat ?")

        assert not result.is_personal_info
        assert not result.skip_retrieval


class TestPhraseSets:
    def test_custom_phrases_extend_behaviour(self):
        phrases = PhraseSets(greeting=["hola"])
        classifier = QueryClassifier(phrases)

        assert classifier.classify("Hola!").skip_retrieval
        assert not classifier.classify("bonjour").skip_retrieval

    def test_regex_characters_in_phrases_are_literal(self):
        classifier = QueryClassifier(PhraseSets(general_meta=["c++?"]))

        assert classifier.classify("c++?").is_general_meta
        assert not classifier.classify("cc").is_general_meta
