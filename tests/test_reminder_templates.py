from paynudge.models.models import ReminderTone
from paynudge.services.reminders.templates import (
    DEFAULT_TEMPLATES,
    EmailTemplate,
    TemplateContext,
    build_timing_label,
    build_timing_line,
    default_template,
    render_template,
)


def _context(days_offset: int = 0, **overrides) -> TemplateContext:
    values = dict(
        days_offset=days_offset,
        client_name="Acme Ltd",
        invoice_number="INV-001",
        amount="£1,234.56",
        due_date="08 Mar 2026",
        issue_date="06 Feb 2026",
        business_name="Studio North",
        sender_name="Sam",
        reply_to_email="sam@studio.test",
        email_signature="-- Sam",
    )
    values.update(overrides)
    return TemplateContext(**values)


def test_timing_line_wording():
    assert build_timing_line(0) == "This invoice is due today."
    assert build_timing_line(3) == "This invoice is 3 days overdue."
    assert build_timing_line(-1) == "This invoice is due in 1 day."
    assert build_timing_line(1) == "This invoice is 1 day overdue."
    assert build_timing_line(-5) == "This invoice is due in 5 days."


def test_timing_label_wording():
    assert build_timing_label(0) == "due today"
    assert build_timing_label(2) == "overdue by 2 days"
    assert build_timing_label(-3) == "due in 3 days"
    assert build_timing_label(-1) == "due in 1 day"


def test_unknown_tokens_are_left_verbatim():
    template = EmailTemplate(subject="{{invoice_number}} {{mystery}}", body="Hello {{client_name}} {{not_a_token}}")
    rendered = render_template(template, _context())
    assert rendered.subject == "INV-001 {{mystery}}"
    assert rendered.body == "Hello Acme Ltd {{not_a_token}}"


def test_rendering_is_deterministic():
    template = DEFAULT_TEMPLATES[ReminderTone.NEUTRAL]
    assert render_template(template, _context(-3)) == render_template(template, _context(-3))


def test_signature_lines_are_removed_from_body():
    template = EmailTemplate(
        subject="Reminder",
        body="Hi {{client_name}},\n\nPlease pay.\n\nThanks, {{email_signature}}\n",
    )
    rendered = render_template(template, _context())
    assert "-- Sam" not in rendered.body
    assert "Thanks" not in rendered.body
    assert rendered.body == "Hi Acme Ltd,\n\nPlease pay."


def test_signature_alias_token_is_substituted():
    template = EmailTemplate(subject="s", body="Regards\n{{signature}}")
    assert render_template(template, _context()).body == "Regards\n-- Sam"


def test_blank_line_runs_collapse_and_body_is_trimmed():
    template = EmailTemplate(subject="  {{timing}}  ", body="\n\nTop\n\n\n\n\nBottom\n\n\n")
    rendered = render_template(template, _context(0))
    assert rendered.subject == "due today"
    assert rendered.body == "Top\n\nBottom"


def test_business_name_tokens():
    template = EmailTemplate(subject="{{your_business_name}}", body="{{business_name}} / {{sender_name}}")
    rendered = render_template(template, _context())
    assert rendered.subject == "Studio North"
    assert rendered.body == "Studio North / Sam"


def test_default_templates_cover_every_tone():
    for tone in ReminderTone:
        template = default_template(tone.value)
        rendered = render_template(template, _context(-3))
        assert "INV-001" in rendered.subject
        assert "due in 3 days" in rendered.subject
        assert "£1,234.56" in rendered.body
        assert "This invoice is due in 3 days." in rendered.body
