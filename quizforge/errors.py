"""
Typed errors raised at the document and request boundaries
"""
from typing import Optional


class QuizForgeError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.user_message = message or self.default_message
        self.detail = detail
        super().__init__(self.user_message)

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        payload = {"success": False, "error": self.user_message, "errorType": self.error_type}
        if self.detail:
            payload["detail"] = self.detail
        return payload


# -------------------- ACQUISITION --------------------

class AcquisitionError(QuizForgeError):
    default_message = "Unable to read the uploaded document"


class UnsupportedFileType(AcquisitionError):
    status_code = 415
    default_message = "Unsupported file type. Please upload .txt, .md, .pdf, .doc, or .docx files."


class FileTooLarge(AcquisitionError):
    status_code = 413
    default_message = "File is too large. The maximum upload size is 10 MB."


class CorruptedOrEncrypted(AcquisitionError):
    default_message = (
        "The document appears to be corrupted or uses an unsupported format. "
        "Please try saving it again or converting it to a text file."
    )


class PasswordProtected(AcquisitionError):
    default_message = (
        "Password-protected or encrypted files are not supported. "
        "Please remove the password protection and try again."
    )


class EncodingError(AcquisitionError):
    default_message = "Unable to read the text file. Please ensure it's saved in UTF-8 encoding."


class InsufficientContent(AcquisitionError):
    default_message = "Please provide at least 50 characters and 10 words of meaningful content."


class AllExtractionStrategiesFailed(AcquisitionError):
    status_code = 422
    default_message = (
        "Unable to read the PDF file. This might be due to the PDF being image-based, "
        "corrupted, or in an unsupported format. Please try converting to a text file "
        "or Word document instead."
    )


# -------------------- QUIZ REQUESTS --------------------

class InvalidQuizRequest(QuizForgeError):
    default_message = "Invalid quiz request"
