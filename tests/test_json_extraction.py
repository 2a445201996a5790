import json
import unittest

from fiat_chat_agent.json_extraction import extract_json_candidate


class ExtractJsonCandidateTests(unittest.TestCase):
    def test_returns_none_without_braces(self) -> None:
        self.assertIsNone(extract_json_candidate("Sure, I can help with that."))

    def test_returns_none_for_empty_text(self) -> None:
        self.assertIsNone(extract_json_candidate(""))

    def test_returns_none_when_closing_brace_precedes_opening(self) -> None:
        self.assertIsNone(extract_json_candidate("} nothing here {"))

    def test_returns_none_with_only_opening_brace(self) -> None:
        self.assertIsNone(extract_json_candidate('{"intent": "query"'))

    def test_strips_surrounding_prose_and_code_fence(self) -> None:
        text = 'Here you go:\n```json\n{"intent": "query"}\n```\nAnything else?'
        self.assertEqual('{"intent": "query"}', extract_json_candidate(text))

    def test_keeps_nested_objects_intact(self) -> None:
        body = '{"intent": "fiat_conversion", "extractedData": {"tokenIn": "USDT", "amountIn": "50"}}'
        candidate = extract_json_candidate(f"prefix {body} suffix")
        self.assertEqual(body, candidate)
        self.assertEqual("50", json.loads(candidate)["extractedData"]["amountIn"])

    def test_keeps_braces_inside_string_values(self) -> None:
        body = '{"suggestedResponse": "Use the {amount} placeholder }"}'
        candidate = extract_json_candidate(body)
        self.assertEqual(body, candidate)
        self.assertEqual("Use the {amount} placeholder }", json.loads(candidate)["suggestedResponse"])

    def test_stray_braces_in_prose_widen_the_span(self) -> None:
        text = '{note} {"intent": "query"}'
        self.assertEqual(text, extract_json_candidate(text))


if __name__ == "__main__":
    unittest.main()
