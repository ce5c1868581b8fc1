from django.core.validators import RegexValidator

# Indian GST identification number: state code, PAN, entity code, "Z", checksum
gstin_validator = RegexValidator(
    regex=r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$",
    message="Invalid GSTIN format",
)

pan_validator = RegexValidator(
    regex=r"^[A-Z]{5}[0-9]{4}[A-Z]{1}$",
    message="Invalid PAN format",
)

phone_validator = RegexValidator(
    regex=r"^[\+]?[1-9][\d]{0,15}$",
    message="Invalid phone number",
)
