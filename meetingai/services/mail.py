import base64

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Attachment, Disposition, FileContent, FileName, FileType, Mail
from flask import current_app


def send_export(to_emails, subject, html, data, filename, content_type):
    """Send an exported meeting document as an attachment; returns the SendGrid status code."""
    sg = SendGridAPIClient(api_key=current_app.config['SENDGRID_API_KEY'])
    message = Mail(from_email=(current_app.config['MAIL_FROM'], current_app.config['MAIL_FROM_NAME']),
                   to_emails=to_emails,
                   subject=subject,
                   html_content=html)
    message.attachment = Attachment(
        FileContent(base64.b64encode(data).decode('ascii')),
        FileName(filename),
        FileType(content_type.split(';')[0]),
        Disposition('attachment'),
    )
    resp = sg.send(message)
    return resp.status_code
