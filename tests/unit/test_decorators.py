"""Unit tests for the tracing decorator."""

from unittest.mock import MagicMock, patch

import pytest

from querykit.utils.decorators import traced


@pytest.fixture
def tracer():
    with patch("querykit.utils.decorators.get_tracer") as get_tracer:
        yield get_tracer.return_value


def _span(tracer):
    return tracer.start_as_current_span.return_value.__enter__.return_value


class TestTraced:

    def test_sets_static_and_dynamic_attributes(self, tracer):
        @traced(
            span_name="querykit.test",
            attributes={"static": "yes", "skipped": None},
            attribute_getter=lambda sql: {"db.statement": sql},
        )
        def run(sql):
            return sql.lower()

        assert run("SELECT 1") == "select 1"

        assert tracer.start_as_current_span.call_args.args == ("querykit.test",)
        span = _span(tracer)
        span.set_attribute.assert_any_call("static", "yes")
        span.set_attribute.assert_any_call("db.statement", "SELECT 1")
        assert all(call.args[0] != "skipped" for call in span.set_attribute.call_args_list)

    def test_records_and_reraises_exceptions(self, tracer):
        failure = RuntimeError("boom")

        @traced()
        def run():
            raise failure

        with pytest.raises(RuntimeError) as exc_info:
            run()

        assert exc_info.value is failure
        span = _span(tracer)
        span.record_exception.assert_called_once_with(failure)
        span.set_status.assert_called_once()

    def test_default_span_name(self, tracer):
        @traced()
        def compute():
            return 1

        compute()
        name = tracer.start_as_current_span.call_args.args[0]
        assert name.endswith("compute")
