"""
Donation form for the /donate page.
Fiat pledges need a USD amount; crypto pledges name a currency and receive
a deposit address.
"""

from flask_wtf import FlaskForm
from wtforms import BooleanField, DecimalField, HiddenField, SelectField, StringField
from wtforms.validators import DataRequired, Email, NumberRange, Optional, ValidationError

PLEDGE_CURRENCIES = [
    ("USD", "US Dollar (card)"),
    ("LTC", "Litecoin"),
    ("BTC", "Bitcoin"),
    ("ETH", "Ethereum"),
    ("USDC", "USD Coin"),
]


class DonationForm(FlaskForm):
    project_slug = HiddenField(validators=[DataRequired()])
    pledge_currency = SelectField(
        "Currency",
        choices=PLEDGE_CURRENCIES,
        default="USD",
        validators=[DataRequired()],
    )
    pledge_amount = DecimalField(
        "Amount",
        places=8,
        validators=[
            DataRequired(message="Please enter an amount."),
            NumberRange(min=0.00000001, message="Pledge amount must be greater than zero."),
        ],
        render_kw={"placeholder": "50.00"},
    )
    is_anonymous = BooleanField("Donate anonymously", default=True)

    first_name = StringField("First name", render_kw={"placeholder": "Satoshi"})
    last_name = StringField("Last name", render_kw={"placeholder": "Nakamoto"})
    receipt_email = StringField(
        "Email",
        validators=[Optional(), Email()],
        render_kw={"placeholder": "name@example.com"},
    )
    address_line1 = StringField("Address")
    address_line2 = StringField("Address line 2", validators=[Optional()])
    city = StringField("City")
    state = StringField("State")
    zipcode = StringField("Zip code")
    country = StringField("Country")

    tax_receipt = BooleanField("I want a tax receipt")
    join_mailing_list = BooleanField("Join the mailing list")
    social_x = StringField("X handle", validators=[Optional()], render_kw={"placeholder": "@handle"})

    @property
    def is_fiat(self) -> bool:
        return (self.pledge_currency.data or "").upper() == "USD"

    def validate_first_name(self, field):
        if not self.is_anonymous.data and not (field.data or "").strip():
            raise ValidationError("First name is required unless you donate anonymously.")

    def validate_last_name(self, field):
        if not self.is_anonymous.data and not (field.data or "").strip():
            raise ValidationError("Last name is required unless you donate anonymously.")

    # Card pledges from named donors carry a billing address.
    def _require_billing(self, field):
        if self.is_fiat and not self.is_anonymous.data and not (field.data or "").strip():
            raise ValidationError(f"{field.label.text} is required for card donations unless you donate anonymously.")

    validate_address_line1 = _require_billing
    validate_city = _require_billing
    validate_state = _require_billing
    validate_zipcode = _require_billing
    validate_country = _require_billing

    def to_pledge(self, organization_id) -> dict:
        """Shape the form as the JSON body the pledge workflows accept."""
        return {
            "organizationId": organization_id,
            "projectSlug": self.project_slug.data,
            "pledgeCurrency": self.pledge_currency.data,
            "pledgeAmount": str(self.pledge_amount.data),
            "isAnonymous": bool(self.is_anonymous.data),
            "firstName": self.first_name.data or None,
            "lastName": self.last_name.data or None,
            "receiptEmail": self.receipt_email.data or None,
            "addressLine1": self.address_line1.data or None,
            "addressLine2": self.address_line2.data or None,
            "city": self.city.data or None,
            "state": self.state.data or None,
            "zipcode": self.zipcode.data or None,
            "country": self.country.data or None,
            "taxReceipt": bool(self.tax_receipt.data),
            "joinMailingList": bool(self.join_mailing_list.data),
            "socialX": self.social_x.data or None,
        }
