"""
Synthesized error pages.
"""

import html

from .models import ErrorPage

SERVICE_ERROR_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>500 - Service Error</title>
    <style>
        body {
            font-family: Baskerville, 'Palatino Linotype', Georgia, serif;
            display: flex;
            justify-content: center;
            align-items: center;
            min-height: 100vh;
            margin: 0;
            background: linear-gradient(145deg, #0d1f0d 0%, #1a3a1a 50%, #0f2810 100%);
            color: #c9b896;
        }
        .container { text-align: center; padding: 3rem; max-width: 480px; }
        .ornament { color: #d4af37; font-size: 1.5rem; letter-spacing: 0.5em; margin-bottom: 1rem; }
        h1 { font-size: 7rem; margin: 0; color: #d4af37; font-weight: normal; letter-spacing: 0.15em; }
        .message { font-size: 1.4rem; margin: 1.5rem 0 0.5rem; font-style: italic; }
        .divider { width: 60px; height: 1px; background: #d4af37; margin: 2rem auto; opacity: 0.5; }
        .subtext { font-size: 1rem; opacity: 0.7; margin-top: 2rem; line-height: 1.9; }
        .ref { font-size: 0.75rem; opacity: 0.4; margin-top: 2rem; }
    </style>
</head>
<body>
    <div class="container">
        <div class="ornament">&#8226; &#8226; &#8226;</div>
        <h1>500</h1>
        <p class="message">Most unfortunate, indeed.</p>
        <div class="divider"></div>
        <p class="subtext">The service has encountered a spot of bother.<br>Do try again in a moment.</p>
        <p class="ref">{reference}</p>
    </div>
</body>
</html>"""


def service_error_page(reference: str = "") -> ErrorPage:
    """Styled 500 page. ``reference`` (a request id) helps match logs to reports."""
    body = SERVICE_ERROR_HTML.replace("{reference}", html.escape(reference))
    return ErrorPage(status=500, description="Internal Server Error", body=body)
