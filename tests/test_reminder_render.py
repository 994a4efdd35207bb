from paynudge.services.reminders.profile import SenderProfile, resolve_reply_to, resolve_sender_name
from paynudge.services.reminders.render import render_reminder_content, to_html
from paynudge.services.reminders.templates import EmailTemplate

TEMPLATE = EmailTemplate(
    subject="Invoice {{invoice_number}} {{timing}}",
    body="Hi {{client_name}},\n{{timing_line}}\n\n{{email_signature}}",
)


def _render(profile: SenderProfile | None = None, business_name: str | None = "Studio North"):
    return render_reminder_content(
        TEMPLATE,
        days_offset=2,
        client_name="O'Neil & Sons",
        invoice_number="INV-9",
        amount="£10.00",
        due_date="03 Mar 2026",
        issue_date="01 Feb 2026",
        business_name=business_name,
        sender_profile=profile,
    )


def test_to_html_escapes_and_breaks_lines():
    assert to_html("<b>\"Tom\" & 'Jerry'</b>\nnext") == (
        "&lt;b&gt;&quot;Tom&quot; &amp; &#39;Jerry&#39;&lt;/b&gt;<br/>next"
    )


def test_signature_is_appended_once_with_default_wording():
    content = _render(SenderProfile(sender_name="Sam Sender"))
    assert content.subject == "Invoice INV-9 overdue by 2 days"
    assert content.text == "Hi O'Neil & Sons,\nThis invoice is 2 days overdue.\n\n-- Sam Sender"
    assert content.text.count("-- Sam Sender") == 1
    assert content.html.endswith("<br/><br/>-- Sam Sender")
    assert "O&#39;Neil &amp; Sons" in content.html


def test_custom_signature_wins():
    content = _render(SenderProfile(sender_name="Sam", email_signature="Best,\nSam at Studio"))
    assert content.text.endswith("\n\nBest,\nSam at Studio")
    assert content.html.endswith("Best,<br/>Sam at Studio")


def test_sender_name_falls_back_to_full_name_then_business():
    assert resolve_sender_name(SenderProfile(full_name="Jo Bloggs"), "Studio") == "Jo Bloggs"
    assert resolve_sender_name(SenderProfile(sender_name="  "), "Studio") == "Studio"
    assert resolve_sender_name(None, None) == "PayNudge"


def test_missing_profile_uses_business_name_and_no_reply_to():
    content = _render(None)
    assert content.text.endswith("-- Studio North")
    assert content.reply_to_email is None


def test_reply_to_precedence():
    assert resolve_reply_to(SenderProfile(reply_to_email="billing@studio.test"), "login@studio.test") == (
        "billing@studio.test"
    )
    assert resolve_reply_to(SenderProfile(), "login@studio.test") == "login@studio.test"
    assert resolve_reply_to(None) == ""
    assert SenderProfile().with_reply_to("login@studio.test").reply_to_email == "login@studio.test"
    assert SenderProfile(reply_to_email="a@b.test").with_reply_to("login@studio.test").reply_to_email == "a@b.test"
