import unittest

from orderhub.contexts.orders.domain.state_machine import (
    ORDER_STATUSES,
    ORDER_TRANSITIONS,
    append_cancellation_reason,
    decide_cancellation,
    decide_deletion,
    decide_transition,
    parse_status,
)
from orderhub.errors import InvalidStatusError


ALLOWED_PAIRS = {
    ("pending", "processing"),
    ("pending", "cancelled"),
    ("processing", "shipped"),
    ("processing", "cancelled"),
    ("shipped", "delivered"),
}


class OrderStateMachineTest(unittest.TestCase):
    def test_statuses_are_the_closed_five_value_set(self) -> None:
        self.assertEqual(
            set(ORDER_STATUSES),
            {"pending", "processing", "shipped", "delivered", "cancelled"},
        )
        self.assertEqual(set(ORDER_TRANSITIONS), set(ORDER_STATUSES))

    def test_every_status_pair_matches_transition_table(self) -> None:
        checked = 0
        for current in ORDER_STATUSES:
            for requested in ORDER_STATUSES:
                decision = decide_transition(current, requested)
                expected = (current, requested) in ALLOWED_PAIRS
                self.assertEqual(decision.allowed, expected, f"{current} -> {requested}")
                if expected:
                    self.assertEqual(decision.status, requested)
                    self.assertIsNone(decision.reason)
                else:
                    self.assertEqual(decision.status, current)
                    self.assertIn(current, decision.reason)
                    self.assertIn(requested, decision.reason)
                checked += 1
        self.assertEqual(checked, 25)

    def test_rejection_reason_lists_valid_targets(self) -> None:
        decision = decide_transition("pending", "delivered")
        self.assertEqual(
            decision.reason,
            "Invalid status transition from pending to delivered. Valid transitions: processing, cancelled",
        )

    def test_terminal_rejection_renders_none(self) -> None:
        decision = decide_transition("delivered", "pending")
        self.assertFalse(decision.allowed)
        self.assertTrue(decision.reason.endswith("Valid transitions: none"))

    def test_cancellation_only_from_pending_or_processing(self) -> None:
        for status in ORDER_STATUSES:
            decision = decide_cancellation(status)
            self.assertEqual(decision.allowed, status in {"pending", "processing"}, status)
            if decision.allowed:
                self.assertEqual(decision.status, "cancelled")
            else:
                self.assertIn("already shipped or delivered", decision.reason)

    def test_deletion_only_from_pending_or_cancelled(self) -> None:
        for status in ORDER_STATUSES:
            decision = decide_deletion(status)
            self.assertEqual(decision.allowed, status in {"pending", "cancelled"}, status)
            if not decision.allowed:
                self.assertIn("in progress or completed", decision.reason)

    def test_cancellation_reason_appended_to_existing_notes(self) -> None:
        self.assertEqual(
            append_cancellation_reason("first order", "damaged"),
            "first order\nCancellation reason: damaged",
        )

    def test_cancellation_reason_becomes_note_without_prior_notes(self) -> None:
        self.assertEqual(append_cancellation_reason(None, "damaged"), "Cancellation reason: damaged")
        self.assertEqual(append_cancellation_reason("", "damaged"), "Cancellation reason: damaged")

    def test_missing_reason_keeps_notes(self) -> None:
        self.assertEqual(append_cancellation_reason("keep me", None), "keep me")
        self.assertIsNone(append_cancellation_reason(None, ""))

    def test_unknown_status_is_rejected_without_coercion(self) -> None:
        for value in ("PENDING", "Shipped", "complete", "", None, 3):
            with self.assertRaises(InvalidStatusError):
                parse_status(value)
        with self.assertRaises(InvalidStatusError):
            decide_transition("pending", "done")
        with self.assertRaises(InvalidStatusError):
            decide_cancellation("archived")

    def test_invalid_status_error_maps_to_bad_request(self) -> None:
        with self.assertRaises(InvalidStatusError) as ctx:
            parse_status("archived")
        self.assertEqual(ctx.exception.http_status, 400)
        self.assertEqual(ctx.exception.code, "invalid_status")


if __name__ == "__main__":
    unittest.main()
