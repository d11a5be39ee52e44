from django import forms
from django.core.exceptions import ValidationError

from . import profile
from .members import STATUSES

STATUS_CHOICES = [(status, status) for status in STATUSES]


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput)


class RegisterForm(forms.Form):
    full_name = forms.CharField(max_length=100)
    email = forms.EmailField()
    password = forms.CharField(min_length=6, widget=forms.PasswordInput)
    confirmation = forms.CharField(widget=forms.PasswordInput)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("password") and cleaned.get("password") != cleaned.get("confirmation"):
            self.add_error("confirmation", "Passwords must match.")
        return cleaned


class MemberForm(forms.Form):
    name = forms.CharField(max_length=100, validators=[profile.validate_name])
    email = forms.EmailField()
    phone = forms.CharField(required=False, validators=[profile.validate_uk_phone])
    date_of_birth = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
        validators=[profile.validate_date_of_birth],
    )
    join_date = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    status = forms.ChoiceField(choices=STATUS_CHOICES, initial="Active")
    current_address = forms.CharField(required=False, validators=[profile.validate_address])
    back_home_address = forms.CharField(required=False)
    emergency_contact_number = forms.CharField(
        required=False, validators=[profile.validate_uk_phone]
    )

    def to_row(self):
        """Cleaned data as a JSON-ready ``members`` row."""
        row = {}
        for field, value in self.cleaned_data.items():
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            row[field] = value if value != "" else None
        return row


class PaymentForm(forms.Form):
    member_id = forms.CharField()
    amount = forms.DecimalField(max_digits=10, decimal_places=2)
    paid_on = forms.DateField(widget=forms.DateInput(attrs={"type": "date"}))

    def clean_amount(self):
        amount = self.cleaned_data["amount"]
        if amount <= 0:
            raise ValidationError("Please enter a valid amount greater than 0")
        return amount


class EventForm(forms.Form):
    title = forms.CharField(max_length=200)
    description = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 4}))
    event_date = forms.DateTimeField(
        widget=forms.DateTimeInput(attrs={"type": "datetime-local"}),
        input_formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%d"],
    )
    location = forms.CharField(required=False, max_length=200)

    def to_row(self):
        data = dict(self.cleaned_data)
        data["event_date"] = data["event_date"].isoformat()
        return data


class ProfileForm(forms.Form):
    name = forms.CharField(validators=[profile.validate_name])
    phone = forms.CharField(required=False, validators=[profile.validate_uk_phone])
    date_of_birth = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
        validators=[profile.validate_date_of_birth],
    )
    current_address = forms.CharField(required=False, validators=[profile.validate_address])
    back_home_address = forms.CharField(required=False)
    emergency_contact_number = forms.CharField(
        required=False, validators=[profile.validate_uk_phone]
    )

    def to_updates(self):
        updates = {}
        for field, value in self.cleaned_data.items():
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            updates[field] = value if value != "" else None
        return profile.sanitize_profile_data(updates)


class AvatarForm(forms.Form):
    avatar = forms.FileField()


class FamilyMemberForm(forms.Form):
    name = forms.CharField(max_length=50)
    relationship = forms.CharField(max_length=30)
    phone = forms.CharField(required=False)
    age = forms.IntegerField(required=False)

    def clean(self):
        cleaned = super().clean()
        try:
            profile.validate_family_member(cleaned)
        except ValidationError as exc:
            for field, errors in exc.message_dict.items():
                if field not in self.errors:
                    self.add_error(field, errors)
        return cleaned

    def to_entry(self):
        return {key: value for key, value in self.cleaned_data.items() if value not in ("", None)}


class PostForm(forms.Form):
    title = forms.CharField(max_length=200)
    content = forms.CharField(widget=forms.Textarea(attrs={"rows": 3}))


class CommentForm(forms.Form):
    content = forms.CharField(max_length=1000, widget=forms.Textarea(attrs={"rows": 2}))


class MessageForm(forms.Form):
    content = forms.CharField(max_length=2000, widget=forms.Textarea(attrs={"rows": 2}))
