AUTOMATION_MARKERS = (
    "headless",
    "phantomjs",
    "puppeteer",
    "playwright",
    "selenium",
    "webdriver",
)
BOT_UA_MARKERS = ("bot", "crawler", "spider", "scrapy")
STRONG_BOT_UA_MARKERS = (
    "curl/",
    "wget/",
    "python-requests",
    "python-httpx",
    "go-http-client",
    "httpclient",
)


def contains_any(value: str, markers: tuple[str, ...]) -> bool:
    return any(marker in value for marker in markers)


def looks_automated(user_agent: str | None) -> bool:
    if not user_agent:
        return False
    ua = user_agent.lower()
    return (
        contains_any(ua, AUTOMATION_MARKERS)
        or contains_any(ua, STRONG_BOT_UA_MARKERS)
        or contains_any(ua, BOT_UA_MARKERS)
    )


__all__ = (
    "AUTOMATION_MARKERS",
    "BOT_UA_MARKERS",
    "STRONG_BOT_UA_MARKERS",
    "contains_any",
    "looks_automated",
)
