from envier import En


def _non_negative(value):
    # type: (int) -> None
    if value < 0:
        raise ValueError("value must be greater than or equal to 0, got %d" % value)


class ChainTraceConfig(En):
    __prefix__ = "chaintrace"

    enabled = En.v(
        bool,
        "enabled",
        default=True,
        help_type="Boolean",
        help="Register the OpenTelemetry callback handler when patching LangChain",
    )

    capture_content = En.v(
        bool,
        "capture_content",
        default=True,
        help_type="Boolean",
        help="Record prompts, completions and tool inputs/outputs as span attributes",
    )

    span_char_limit = En.v(
        int,
        "span_char_limit",
        default=0,
        help_type="Integer",
        help="Maximum number of characters kept for free-form span attributes (0 disables truncation)",
        validator=_non_negative,
    )

    logging_rate = En.v(
        int,
        "logging_rate",
        default=60,
        help_type="Integer",
        help="Seconds between two identical log records (0 disables rate limiting)",
    )


config = ChainTraceConfig()
