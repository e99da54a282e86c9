"""Email templates for appointment notifications, rendered with Jinja2."""

from jinja2 import Environment, select_autoescape


_env = Environment(autoescape=select_autoescape(default=True), trim_blocks=True, lstrip_blocks=True)

TEMPLATES = {
    'patient-appointment': (
        'Telecare: Your Appointment is Confirmed',
        """
<p>Hello {{ patientName }},</p>
<p>Your consultation with Dr. {{ doctorName }} is confirmed for {{ appointmentTime }}.</p>
{% if purposeOfConsultation %}<p>Purpose: {{ purposeOfConsultation }}</p>{% endif %}
<p>Join the video call here: <a href="{{ meetingLink }}">{{ meetingLink }}</a></p>
""",
    ),
    'doctor-appointment': (
        'Telecare: A New Appointment is Booked',
        """
<p>Hello Dr. {{ doctorName }},</p>
<p>{{ patientFullName }} booked a consultation with you for {{ appointmentTime }}.</p>
{% if purposeOfConsultation %}<p>Purpose: {{ purposeOfConsultation }}</p>{% endif %}
{% if initialSymptoms %}<p>Reported symptoms: {{ initialSymptoms }}</p>{% endif %}
<p>Meeting link: <a href="{{ meetingLink }}">{{ meetingLink }}</a></p>
""",
    ),
    'appointment-cancellation': (
        'Telecare: Appointment Cancelled',
        """
<p>Hello {{ recipientName }},</p>
<p>The consultation between Dr. {{ doctorName }} and {{ patientFullName }} scheduled for
{{ appointmentTime }} was cancelled by {{ cancellingPartyName }}.</p>
""",
    ),
}


def render_notification(template_name: str, variables: dict) -> tuple[str, str]:
    """Return ``(subject, html_body)`` for a known template.

    Raises ``KeyError`` for an unknown template name.
    """
    subject, source = TEMPLATES[template_name]
    body = _env.from_string(source).render(**variables)
    return subject, body.strip()
