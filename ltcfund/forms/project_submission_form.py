from flask_wtf import FlaskForm
from wtforms import RadioField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Email, Optional, Regexp

MAIN_FOCUS_CHOICES = [
    ("", "Select a focus"),
    ("litecoin", "Litecoin Core"),
    ("meta", "Meta Protocols (Eg. Ordinals/Omni)"),
    ("ordinals", "Ordinals Lite"),
    ("omni", "Omni Layer"),
    ("tools", "Tooling (Eg. LDK/LTCSuite)"),
    ("ldk", "Litecoin Dev Kit (Rust)"),
    ("ltcsuite", "LTC Suite (Go)"),
    ("lightning", "Lightning Network"),
    ("atomicswaps", "Atomic Swaps"),
    ("education", "Education/Guides"),
    ("wallet", "Wallets"),
    ("other", "Other"),
]

REPO_URL = r"^(https?://)?(www\.)?github\.com/[A-Za-z0-9_-]+/[A-Za-z0-9_-]+/?$"
PROFILE_URL = r"^(https?://)?(www\.)?github\.com/[A-Za-z0-9_-]+/?$"
YES_NO = [("yes", "Yes"), ("no", "No")]


class ProjectSubmissionForm(FlaskForm):
    # ---- Project overview ----
    project_name = StringField("Project Name", validators=[DataRequired(message="Project Name is required")])
    project_description = TextAreaField(
        "Project Description",
        validators=[DataRequired(message="Project Description is required")],
    )
    main_focus = SelectField(
        "Main Focus",
        choices=MAIN_FOCUS_CHOICES,
        validators=[DataRequired(message="Main Focus is required")],
    )
    potential_impact = TextAreaField(
        "Potential Impact",
        validators=[DataRequired(message="Potential Impact is required")],
    )
    project_repository = StringField(
        "Project Repository",
        validators=[Optional(), Regexp(REPO_URL, message="Please enter a valid GitHub repository URL")],
        render_kw={"placeholder": "https://github.com/your-repo"},
    )
    social_media_links = TextAreaField(
        "Social Media Links",
        validators=[DataRequired(message="Social Media Links are required")],
    )
    open_source = RadioField(
        "Is the project open source?",
        choices=[("yes", "Yes"), ("no", "No"), ("partially", "Partially")],
        validators=[Optional()],
    )
    open_source_license = StringField("License", validators=[Optional()])
    partially_open_source = TextAreaField("Which parts are open source?", validators=[Optional()])

    # ---- Budget ----
    proposed_budget = TextAreaField(
        "Proposed Budget",
        validators=[DataRequired(message="Proposed Budget is required")],
    )
    received_funding = RadioField("Have you received funding before?", choices=YES_NO, validators=[Optional()])
    prior_funding_details = TextAreaField("Prior funding details", validators=[Optional()])

    # ---- Applicant ----
    your_name = StringField("Your Name", validators=[DataRequired(message="Your Name is required")])
    email = StringField(
        "Email",
        validators=[DataRequired(message="Email is required"), Email(message="Invalid email address")],
        render_kw={"placeholder": "name@example.com"},
    )
    is_lead_contributor = RadioField("Are you the lead contributor?", choices=YES_NO, validators=[Optional()])
    other_lead = StringField("Who is the lead contributor?", validators=[Optional()])
    personal_github = StringField(
        "Personal GitHub",
        validators=[Optional(), Regexp(PROFILE_URL, message="Please enter a valid GitHub profile URL")],
        render_kw={"placeholder": "https://github.com/your-username"},
    )
    other_contact_details = StringField("Other contact details", validators=[Optional()])
    prior_contributions = TextAreaField("Prior contributions", validators=[Optional()])
    references = TextAreaField(
        "References",
        validators=[DataRequired(message="References are required")],
    )

    def to_submission(self) -> dict:
        return {
            "project_overview": {
                "project_name": self.project_name.data,
                "project_description": self.project_description.data,
                "main_focus": self.main_focus.data,
                "potential_impact": self.potential_impact.data,
                "project_repository": self.project_repository.data,
                "social_media_links": self.social_media_links.data,
                "open_source": self.open_source.data,
                "open_source_license": self.open_source_license.data,
                "partially_open_source": self.partially_open_source.data,
            },
            "project_budget": {
                "proposed_budget": self.proposed_budget.data,
                "received_funding": self.received_funding.data == "yes",
                "prior_funding_details": self.prior_funding_details.data,
            },
            "applicant_information": {
                "your_name": self.your_name.data,
                "email": self.email.data,
                "is_lead_contributor": self.is_lead_contributor.data == "yes",
                "other_lead": self.other_lead.data,
                "personal_github": self.personal_github.data,
                "other_contact_details": self.other_contact_details.data,
                "prior_contributions": self.prior_contributions.data,
                "references": self.references.data,
            },
        }
