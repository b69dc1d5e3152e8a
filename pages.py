from flask import render_template_string

from bungie_client import GENERIC_ERROR_MESSAGE
from verification import Outcome, Verification

MISSING_IDENTITY_MESSAGE = "Bungie did not return a display name for your account."

_LAYOUT = """<html>
  <head>
    <title>{{ title }}</title>
    <style>
      body {
        font-family: Arial, sans-serif;
        background-color: #101114;
        color: #ffffff;
        text-align: center;
        padding: 50px 20px;
      }
      .container {
        max-width: 600px;
        margin: 0 auto;
        background-color: rgba(0, 0, 0, 0.5);
        padding: 30px;
        border-radius: 8px;
      }
      h1 { color: {{ accent }}; }
      .icon { font-size: 60px; color: {{ accent }}; margin-bottom: 20px; }
      .details {
        text-align: left;
        background-color: rgba(255, 62, 62, 0.1);
        padding: 15px;
        border-radius: 5px;
        margin: 20px 0;
      }
    </style>
  </head>
  <body>
    <div class="container">
      <div class="icon">{{ icon }}</div>
      <h1>{{ title }}</h1>
      {% for line in lines %}<p>{{ line }}</p>
      {% endfor %}{% if details %}<div class="details">
        {% for label, value in details %}<p><strong>{{ label }}:</strong> {{ value }}</p>
        {% endfor %}</div>
      {% endif %}{% if footer %}<p>{{ footer }}</p>{% endif %}
    </div>
  </body>
</html>
"""

SUCCESS_GREEN = "#c4ff00"
FAILURE_RED = "#ff3e3e"


def _page(title, icon, accent, lines, details=None, footer=None):
    return render_template_string(
        _LAYOUT,
        title=title,
        icon=icon,
        accent=accent,
        lines=lines,
        details=details or [],
        footer=footer,
    )


def render_verification(verification: Verification):
    """Map a Verification to a Flask response tuple ``(body, status[, headers])``."""
    outcome = verification.outcome

    if outcome is Outcome.MISSING_CODE:
        return "Authorization code missing", 400, {"Content-Type": "text/plain; charset=utf-8"}

    if outcome is Outcome.MISSING_STATE:
        return "State parameter missing", 400, {"Content-Type": "text/plain; charset=utf-8"}

    if outcome is Outcome.SUCCESS:
        return _page(
            "Verification Successful!",
            "✓",
            SUCCESS_GREEN,
            [
                "Your Bungie account has been successfully verified.",
                "You may now close this window and return to Discord.",
            ],
        ), 200

    if outcome is Outcome.MISMATCH:
        return _page(
            "Verification Failed",
            "✗",
            FAILURE_RED,
            ["The Bungie username does not match the nickname you provided in your application."],
            details=[
                ("Bungie Username", verification.identity),
                ("Application Nickname", verification.nickname),
            ],
            footer="Please make sure you're logged in with the correct Bungie account and try again.",
        ), 400

    if outcome is Outcome.MISSING_IDENTITY:
        return _page(
            "Verification Failed",
            "✗",
            FAILURE_RED,
            [MISSING_IDENTITY_MESSAGE],
            footer="Please make sure your Bungie Name is set up and try again.",
        ), 400

    if outcome is Outcome.PROVIDER_ERROR:
        return _page(
            "Verification Error",
            "⚠",
            FAILURE_RED,
            [verification.message],
            footer="Please try again or contact support if the issue persists.",
        ), 400

    return _page(
        "Verification Error",
        "⚠",
        FAILURE_RED,
        [verification.message or GENERIC_ERROR_MESSAGE],
        footer="Please try again or contact support if the issue persists.",
    ), 500
