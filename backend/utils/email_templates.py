from html import escape

BRAND = "ExpressBuy"


def _layout(title: str, body: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background-color: #232f3e; color: white; padding: 20px; text-align: center;">
    <h1>{title}</h1>
  </div>
  <div style="padding: 20px; border: 1px solid #ddd;">
    {body}
    <p>Best regards,<br><strong>{BRAND} Admin Team</strong></p>
  </div>
  <div style="background-color: #f5f5f5; padding: 20px; text-align: center; font-size: 12px; color: #666;">
    <p>&copy; {BRAND}. All rights reserved.</p>
  </div>
</div>
"""


def otp_email(name: str, code: str, expiry_minutes: int) -> tuple[str, str]:
    body = f"""
    <p>Hi <strong>{escape(name)}</strong>,</p>
    <p>Thank you for registering as a seller on {BRAND}. Use the one-time password below to verify your email address:</p>
    <div style="background-color: #f0f0f0; border: 2px solid #FF9900; padding: 20px; text-align: center; margin: 20px 0;">
      <p style="font-size: 24px; font-weight: bold; color: #FF9900; margin: 0; letter-spacing: 5px;">{escape(code)}</p>
    </div>
    <ul>
      <li>This OTP is valid for {expiry_minutes} minutes only</li>
      <li>Do not share this OTP with anyone</li>
      <li>If you did not initiate this registration, please ignore this email</li>
    </ul>
    """
    return (
        "Email Verification - OTP for Seller Registration",
        _layout("Email Verification", body),
    )


def approval_email(name: str) -> tuple[str, str]:
    body = f"""
    <p>Hi <strong>{escape(name)}</strong>,</p>
    <p>Great news! Your seller account has been <strong>approved</strong> and is now active.</p>
    <p>You can now list products, manage your inventory, process customer orders and track your earnings.</p>
    """
    return (
        "Your Seller Account Has Been Approved!",
        _layout("Account Approved", body),
    )


def rejection_email(name: str, reason: str) -> tuple[str, str]:
    body = f"""
    <p>Hi <strong>{escape(name)}</strong>,</p>
    <p>Thank you for applying to become a seller. Unfortunately, we are unable to approve your seller account at this time for the following reason:</p>
    <div style="background-color: #fff3cd; border-left: 4px solid #ff6b6b; padding: 15px; margin: 20px 0;">
      <p><strong>Reason:</strong></p>
      <p>{escape(reason)}</p>
    </div>
    <p>You can address the concerns above and reapply, or contact our support team for clarification.</p>
    """
    return (
        "Update on Your Seller Account Application",
        _layout("Application Status Update", body),
    )
