"""
HTML pages for the browser-facing account links (email verification and
password reset).
"""

from html import escape

_PAGE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; background: #f0fdfa; margin: 0;
           display: flex; align-items: center; justify-content: center; min-height: 100vh; }}
    .card {{ background: #fff; border-radius: 12px; padding: 40px; max-width: 420px;
            box-shadow: 0 10px 25px rgba(0, 0, 0, 0.08); text-align: center; }}
    h1 {{ color: {color}; font-size: 24px; }}
    p {{ color: #52606d; line-height: 1.5; }}
    a, button {{ display: inline-block; margin-top: 16px; background: #0f766e; color: #fff;
                padding: 10px 22px; border: 0; border-radius: 6px; text-decoration: none;
                font-size: 15px; cursor: pointer; }}
    input {{ width: 100%; padding: 10px; margin-top: 12px; border: 1px solid #cbd2d9;
            border-radius: 6px; box-sizing: border-box; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>{title}</h1>
    {body}
  </div>
</body>
</html>
"""

_SUCCESS = "#0f766e"
_FAILURE = "#b91c1c"


def _render(title: str, body: str, color: str) -> str:
    return _PAGE.format(title=escape(title), body=body, color=color)


def verification_success_page(login_url: str) -> str:
    return _render(
        "Email Verified Successfully",
        "<p>Your email has been verified. You can now log in to your account.</p>"
        f'<a href="{escape(login_url)}">Go to login</a>',
        _SUCCESS,
    )


def verification_failed_page() -> str:
    return _render(
        "Verification Failed",
        "<p>This verification link is invalid or has expired. "
        "Request a new verification email and try again.</p>",
        _FAILURE,
    )


def reset_password_form_page(action_url: str, error: str | None = None) -> str:
    notice = f"<p style=\"color: {_FAILURE};\">{escape(error)}</p>" if error else ""
    return _render(
        "Reset Your Password",
        notice + f'<form method="post" action="{escape(action_url)}">'
        '<input type="password" name="newPassword" placeholder="New password" '
        'minlength="8" required>'
        '<button type="submit">Reset password</button>'
        "</form>",
        _SUCCESS,
    )


def reset_password_failed_page() -> str:
    return _render(
        "Password Reset Failed",
        "<p>This password reset link is invalid or has expired. "
        "Request a new one and try again.</p>",
        _FAILURE,
    )


def reset_password_success_page(login_url: str) -> str:
    return _render(
        "Password Reset Successful",
        "<p>Your password has been changed. You can now log in with your new password.</p>"
        f'<a href="{escape(login_url)}">Go to login</a>',
        _SUCCESS,
    )
