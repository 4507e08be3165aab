# app/services/email_templates.py
"""
HTML/text bodies for outgoing mail
"""

from html import escape
from typing import Tuple

BRAND_HEADER = """
<tr>
  <td align="center" style="padding: 40px 30px 30px; background: linear-gradient(135deg, rgba(236, 72, 153, 0.1) 0%, rgba(251, 113, 133, 0.1) 100%);">
    <h1 style="color: #ec4899; font-size: 36px; margin: 0; font-weight: bold; letter-spacing: 2px;">Dearly</h1>
    <p style="color: #9f1239; font-size: 14px; margin: 8px 0 0; font-style: italic; letter-spacing: 1px;">Express your heart, beautifully</p>
  </td>
</tr>
"""


def _layout(title: str, inner: str, footer: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Georgia', 'Times New Roman', serif; background: linear-gradient(135deg, #fef3f2 0%, #fce7f3 50%, #fae8ff 100%);">
  <table width="100%" cellpadding="0" cellspacing="0" style="padding: 40px 20px;">
    <tr>
      <td align="center">
        <table width="600" cellpadding="0" cellspacing="0" style="max-width: 600px; background: rgba(254, 243, 242, 0.95); border-radius: 16px; overflow: hidden; box-shadow: 0 8px 32px rgba(0, 0, 0, 0.2);">
          {BRAND_HEADER}
          <tr>
            <td style="padding: 40px 30px;">
              <div style="background: white; border-radius: 12px; padding: 40px; box-shadow: 0 4px 16px rgba(0, 0, 0, 0.08);">
                {inner}
              </div>
            </td>
          </tr>
          <tr>
            <td align="center" style="padding: 30px; background: rgba(255, 255, 255, 0.9); border-top: 1px solid rgba(236, 72, 153, 0.2);">
              {footer}
              <p style="color: #9ca3af; font-size: 12px; margin: 8px 0 0; line-height: 1.6;">If you didn't expect this email, you can safely ignore it.</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def _button(link: str, label: str) -> str:
    return (
        f'<div style="text-align: center; margin: 32px 0;">'
        f'<a href="{escape(link, quote=True)}" style="display: inline-block; padding: 16px 40px; '
        f'background: linear-gradient(135deg, #ec4899 0%, #f43f5e 100%); color: white; text-decoration: none; '
        f'border-radius: 50px; font-size: 18px; font-weight: bold;">{escape(label)}</a></div>'
    )


def letter_link_email(recipient_name: str, sender_name: str, letter_title: str, link: str) -> Tuple[str, str, str]:
    """Returns (subject, html, text) for a shared-letter notice."""
    receiver = recipient_name or "there"
    sender = sender_name or "Someone special"
    title = letter_title or "A special letter for you"

    subject = f"💌 {sender} has a letter for you"
    inner = f"""
<h2 style="color: #1f2937; font-size: 28px; margin: 0 0 20px; font-weight: normal;">Hi {escape(receiver)}! 💖</h2>
<p style="color: #4b5563; font-size: 17px; line-height: 1.8; margin: 0 0 24px;">
  <strong style="color: #ec4899;">{escape(sender)}</strong> has written you a heartfelt letter.
</p>
<p style="color: #6b7280; font-size: 16px; font-style: italic; margin: 0 0 24px;">"{escape(title)}"</p>
{_button(link, "Open Your Letter 💌")}
<p style="color: #9ca3af; font-size: 13px; line-height: 1.6;">Or copy this link into your browser:<br/>{escape(link)}</p>
"""
    footer = (
        f'<p style="color: #4b5563; font-size: 14px; margin: 0;">Made with <span style="color: #ec4899;">❤️</span> by '
        f'<strong style="color: #ec4899;">{escape(sender)}</strong> for <strong style="color: #ec4899;">{escape(receiver)}</strong></p>'
    )
    text = (
        f"Hi {receiver}!\n\n{sender} has written you a heartfelt letter: \"{title}\".\n\n"
        f"Open it here: {link}\n\nWith love,\nDearly"
    )
    return subject, _layout("A letter for you", inner, footer), text


def verification_email(first_name: str, link: str) -> Tuple[str, str, str]:
    name = first_name or "there"
    subject = "Verify your email for Dearly 💌"
    inner = f"""
<h2 style="color: #1f2937; font-size: 26px; margin: 0 0 20px; font-weight: normal;">Welcome, {escape(name)}! 💖</h2>
<p style="color: #4b5563; font-size: 17px; line-height: 1.8;">Please confirm your email address to start sending letters.</p>
{_button(link, "Verify Email")}
<p style="color: #9ca3af; font-size: 13px;">This link expires in 24 hours.</p>
"""
    footer = '<p style="color: #4b5563; font-size: 14px; margin: 0;">The Dearly team</p>'
    text = f"Welcome, {name}!\n\nConfirm your email address: {link}\n\nThis link expires in 24 hours."
    return subject, _layout("Verify your email", inner, footer), text


def reward_fulfilled_email(receiver_name: str, sender_first_name: str, reward_name: str,
                           message: str) -> Tuple[str, str, str]:
    receiver = receiver_name or "there"
    sender = sender_first_name or "Your sender"
    reward = reward_name or "your reward"
    subject = f'Your reward "{reward}" has been fulfilled! 🎁'
    inner = f"""
<h2 style="color: #1f2937; font-size: 28px; margin: 0 0 20px; font-weight: normal;">Hi {escape(receiver)}! 💖</h2>
<p style="color: #4b5563; font-size: 17px; line-height: 1.8; margin: 0 0 24px;">{escape(message)}</p>
<div style="margin: 30px 0; padding: 20px; background: #fce7f3; border-radius: 8px; border: 2px solid #ec4899;">
  <p style="font-size: 18px; font-weight: bold; color: #ec4899; margin: 0;">🎁 {escape(reward)}</p>
</div>
<p style="margin-top: 30px; font-size: 16px; color: #555;">With love,<br/><strong style="color: #ec4899;">{escape(sender)} 💝</strong></p>
"""
    footer = (
        f'<p style="color: #4b5563; font-size: 14px; margin: 0;">Made with <span style="color: #ec4899;">❤️</span> by '
        f'<strong style="color: #ec4899;">{escape(sender)}</strong> for <strong style="color: #ec4899;">{escape(receiver)}</strong></p>'
    )
    text = f"Hi {receiver}!\n\n{message}\n\nReward: {reward}\n\nWith love,\n{sender}"
    return subject, _layout("Reward Fulfilled", inner, footer), text


def message_email(subject: str, message: str, sender_name: str = "") -> Tuple[str, str]:
    """Generic message body. Returns (html, text)."""
    paragraphs = "".join(
        f'<p style="color: #4b5563; font-size: 17px; line-height: 1.8;">{escape(line)}</p>'
        for line in message.split("\n") if line.strip()
    )
    signature = f"<p style=\"color: #555;\">{escape(sender_name)}</p>" if sender_name else ""
    footer = '<p style="color: #4b5563; font-size: 14px; margin: 0;">Sent with Dearly 💌</p>'
    return _layout(subject, paragraphs + signature, footer), message
