import unittest

from fiat_chat_agent.models import TransactionData
from fiat_chat_agent.transaction_validator import (
    AMOUNT_REQUIRED,
    CURRENCY_SUGGESTION,
    TOKEN_REQUIRED,
    missing_fields,
    validate_transaction,
)


class ValidateTransactionTests(unittest.TestCase):
    def test_bare_conversion_has_two_errors_and_one_suggestion(self) -> None:
        result = validate_transaction({"type": "fiat_conversion"})
        self.assertFalse(result.is_valid)
        self.assertEqual((TOKEN_REQUIRED, AMOUNT_REQUIRED), result.errors)
        self.assertEqual((CURRENCY_SUGGESTION,), result.suggestions)

    def test_token_and_amount_is_valid(self) -> None:
        result = validate_transaction({"type": "fiat_conversion", "tokenIn": "USDT", "amountIn": "100"})
        self.assertTrue(result.is_valid)
        self.assertEqual((), result.errors)
        self.assertEqual((CURRENCY_SUGGESTION,), result.suggestions)

    def test_fiat_amount_alone_satisfies_amount(self) -> None:
        result = validate_transaction(TransactionData(token_in="USDT", fiat_amount="50000", fiat_currency="NGN"))
        self.assertTrue(result.is_valid)
        self.assertEqual((), result.suggestions)

    def test_missing_token_only(self) -> None:
        result = validate_transaction(TransactionData(amount_in="20", fiat_currency="USD"))
        self.assertFalse(result.is_valid)
        self.assertEqual((TOKEN_REQUIRED,), result.errors)

    def test_blank_values_count_as_absent(self) -> None:
        result = validate_transaction({"type": "fiat_conversion", "tokenIn": " ", "amountIn": ""})
        self.assertEqual((TOKEN_REQUIRED, AMOUNT_REQUIRED), result.errors)

    def test_other_transaction_types_are_not_checked(self) -> None:
        result = validate_transaction({"type": "swap"})
        self.assertTrue(result.is_valid)
        self.assertEqual((), result.errors)
        self.assertEqual((), result.suggestions)


class MissingFieldsTests(unittest.TestCase):
    def test_names_missing_required_fields(self) -> None:
        self.assertEqual(["token", "amount"], missing_fields({"type": "fiat_conversion"}))
        self.assertEqual(["amount"], missing_fields(TransactionData(token_in="USDT")))
        self.assertEqual([], missing_fields(TransactionData(token_in="USDT", amount_in="5")))


if __name__ == "__main__":
    unittest.main()
