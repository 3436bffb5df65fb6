"""
apibin unit tests for the evaluation of conditional requests
"""

import datetime
import unittest as _unittest

from apibin.api.etag import (
    Conditionals, Outcome, evaluate, format_http_date, parse_entity_tags, parse_http_date
)

from . import utils


MODIFIED = datetime.datetime(2022, 2, 1, 12, 34, 56, 789000, tzinfo=datetime.timezone.utc)
EARLIER = MODIFIED - datetime.timedelta(hours=1)
LATER = MODIFIED + datetime.timedelta(hours=1)
VERSION = "abc123"


class EvaluationTests(utils.BaseTest):
    def _evaluate(self, **kwargs) -> Outcome:
        return evaluate(Conditionals(**kwargs), VERSION, MODIFIED)

    def test_no_conditions(self):
        self.assertEqual(Outcome.PROCEED, self._evaluate())

    def test_if_match(self):
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_match=['"abc123"']))
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_match=['"other"', '"abc123"']))
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_match=["*"]))
        self.assertEqual(Outcome.PRECONDITION_FAILED, self._evaluate(if_match=['"other"']))

    def test_if_match_uses_strong_comparison(self):
        self.assertEqual(Outcome.PRECONDITION_FAILED, self._evaluate(if_match=['W/"abc123"']))

    def test_if_none_match(self):
        self.assertEqual(Outcome.NOT_MODIFIED, self._evaluate(if_none_match=['"abc123"']))
        self.assertEqual(Outcome.NOT_MODIFIED, self._evaluate(if_none_match=["*"]))
        self.assertEqual(Outcome.NOT_MODIFIED, self._evaluate(if_none_match=['W/"abc123"']))
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_none_match=['"other"']))

    def test_unquoted_tags(self):
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_match=["abc123"]))
        self.assertEqual(Outcome.NOT_MODIFIED, self._evaluate(if_none_match=["abc123"]))

    def test_if_unmodified_since(self):
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_unmodified_since=LATER))
        self.assertEqual(Outcome.PRECONDITION_FAILED, self._evaluate(if_unmodified_since=EARLIER))

    def test_if_modified_since(self):
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_modified_since=EARLIER))
        self.assertEqual(Outcome.NOT_MODIFIED, self._evaluate(if_modified_since=LATER))

    def test_dates_compared_in_whole_seconds(self):
        exact = parse_http_date(format_http_date(MODIFIED))
        self.assertEqual(Outcome.NOT_MODIFIED, self._evaluate(if_modified_since=exact))
        self.assertEqual(Outcome.PROCEED, self._evaluate(if_unmodified_since=exact))

    def test_if_match_precedes_if_unmodified_since(self):
        self.assertEqual(
            Outcome.PROCEED,
            self._evaluate(if_match=['"abc123"'], if_unmodified_since=EARLIER)
        )
        self.assertEqual(
            Outcome.PRECONDITION_FAILED,
            self._evaluate(if_match=['"other"'], if_unmodified_since=LATER)
        )

    def test_if_none_match_precedes_if_modified_since(self):
        self.assertEqual(
            Outcome.PROCEED,
            self._evaluate(if_none_match=['"other"'], if_modified_since=LATER)
        )
        self.assertEqual(
            Outcome.NOT_MODIFIED,
            self._evaluate(if_none_match=['"abc123"'], if_modified_since=EARLIER)
        )

    def test_failed_precondition_precedes_not_modified(self):
        self.assertEqual(
            Outcome.PRECONDITION_FAILED,
            self._evaluate(if_match=['"other"'], if_none_match=['"abc123"'])
        )

    def test_naive_modification_time(self):
        naive = MODIFIED.replace(tzinfo=None)
        self.assertEqual(Outcome.NOT_MODIFIED, evaluate(Conditionals(if_modified_since=LATER), VERSION, naive))


class ParsingTests(utils.BaseTest):
    def test_entity_tags(self):
        self.assertEqual([], parse_entity_tags(None))
        self.assertEqual([], parse_entity_tags(["", " , "]))
        self.assertEqual(['"a"', 'W/"b"', "*"], parse_entity_tags(['"a", W/"b"', "*"]))

    def test_http_dates(self):
        self.assertIsNone(parse_http_date(None))
        self.assertIsNone(parse_http_date("  "))
        self.assertEqual(
            datetime.datetime(2022, 2, 1, 12, 34, 56, tzinfo=datetime.timezone.utc),
            parse_http_date("Tue, 01 Feb 2022 12:34:56 GMT")
        )
        self.assertEqual("Tue, 01 Feb 2022 12:34:56 GMT", format_http_date(MODIFIED))
        for value in ("yesterday", "2022-02-01", "Tue, 99 Foo 2022"):
            with self.assertRaises(ValueError):
                parse_http_date(value)

    def test_conditionals(self):
        conditionals = Conditionals.parse(['"a"'], None, None, None)
        self.assertTrue(conditionals.present)
        self.assertEqual(['"a"'], conditionals.if_match)
        self.assertFalse(Conditionals.parse().present)
        self.assertTrue(Conditionals.parse(if_modified_since="Tue, 01 Feb 2022 12:34:56 GMT").present)
        with self.assertRaises(ValueError):
            Conditionals.parse(if_unmodified_since="invalid")


if __name__ == '__main__':
    _unittest.main()
