from .donation_form import DonationForm
from .project_submission_form import ProjectSubmissionForm

__all__ = ["DonationForm", "ProjectSubmissionForm"]
