"""SecurePad backend: password-protected notes with expiring attachments."""
