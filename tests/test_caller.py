import sys

from cloudlog.caller import caller_frame, format_exception, format_stack, report_location


def _outer_caller():
    return caller_frame(stacklevel=2)


class TestCallerFrame:
    def test_returns_direct_caller(self):
        assert caller_frame().f_code.co_name == "test_returns_direct_caller"

    def test_stacklevel_walks_outward(self):
        assert _outer_caller().f_code.co_name == "test_stacklevel_walks_outward"


class TestReportLocation:
    def test_from_frame(self):
        frame = sys._getframe()
        location = report_location(frame)
        assert location.file_path == frame.f_code.co_filename
        assert location.function_name == f"{__name__}.test_from_frame"
        assert location.line_number == frame.f_code.co_firstlineno + 2

    def test_without_frame(self):
        location = report_location(None)
        assert location.function_name == "unknown"
        assert location.line_number == 0


class TestFormatStack:
    def test_includes_calling_function(self):
        text = format_stack(sys._getframe())
        assert text.startswith("Traceback (most recent call last):\n")
        assert text.rstrip().splitlines()[-2].endswith("in test_includes_calling_function")


class TestFormatException:
    def test_no_exception(self):
        assert format_exception(None) is None
        assert format_exception(False) is None
        assert format_exception(True) is None

    def test_current_exception(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            text = format_exception(True)
        assert text.startswith("Traceback (most recent call last):\n")
        assert text.rstrip().endswith("ValueError: bad value")

    def test_exc_info_tuple(self):
        try:
            raise KeyError("k")
        except KeyError:
            info = sys.exc_info()
        assert "KeyError: 'k'" in format_exception(info)

    def test_exception_instance_without_traceback(self):
        assert format_exception(RuntimeError("never raised")) == "RuntimeError: never raised\n"
