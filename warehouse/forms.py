from django import forms
from django.core.exceptions import ValidationError

from masterdata.models import Material
from warehouse.models import (
    GoodsIssue,
    GoodsIssueLine,
    GoodsReceipt,
    GoodsReceiptLine,
    StoreRequest,
    StoreRequestLine,
)


class _LineForm(forms.ModelForm):
    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        if entity is not None:
            self.fields["material"].queryset = Material.objects.filter(entity=entity, is_active=True)

    def clean_quantity(self):
        quantity = self.cleaned_data["quantity"]
        if quantity <= 0:
            raise forms.ValidationError("Quantity must be greater than zero.")
        return quantity


class GoodsReceiptLineForm(_LineForm):
    class Meta:
        model = GoodsReceiptLine
        fields = ["material", "quantity", "unit_price", "storage_location", "note"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["unit_price"].required = False

    def clean_unit_price(self):
        price = self.cleaned_data.get("unit_price")
        if price is None:
            return self.instance.unit_price
        if price < 0:
            raise forms.ValidationError("Unit price may not be negative.")
        return price


class StoreRequestLineForm(_LineForm):
    class Meta:
        model = StoreRequestLine
        fields = ["material", "quantity", "note"]


class GoodsIssueLineForm(_LineForm):
    class Meta:
        model = GoodsIssueLine
        fields = ["material", "quantity", "note"]


def clean_lines(rows, form_class, entity, *, key="lines"):
    """Validate a JSON list of document lines; returns unsaved line instances."""
    if not isinstance(rows, list):
        raise ValidationError({key: f"{key} must be a list."})

    lines = []
    errors = {}
    for i, row in enumerate(rows):
        form = form_class(row if isinstance(row, dict) else {}, entity=entity)
        if form.is_valid():
            lines.append(form.save(commit=False))
        else:
            errors[f"{key}[{i}]"] = [e for errs in form.errors.values() for e in errs]
    if errors:
        raise ValidationError(errors)
    if not lines:
        raise ValidationError({key: "At least one line is required."})
    return lines


class GoodsReceiptForm(forms.ModelForm):
    state = forms.ChoiceField(
        choices=[(GoodsReceipt.State.DRAFT, "Draft"), (GoodsReceipt.State.COMPLETED, "Completed")],
        required=False,
    )

    class Meta:
        model = GoodsReceipt
        fields = ["received_on", "vendor_name", "purchase_order_no", "delivery_note_no", "invoice_no",
                  "received_by", "checked_by", "note"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["received_on"].required = False

    def clean_received_on(self):
        return self.cleaned_data.get("received_on") or self.instance.received_on


class StoreRequestForm(forms.ModelForm):
    class Meta:
        model = StoreRequest
        fields = ["requested_on", "division", "requested_by", "note"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["requested_on"].required = False

    def clean_requested_on(self):
        return self.cleaned_data.get("requested_on") or self.instance.requested_on


class GoodsIssueForm(forms.ModelForm):
    state = forms.ChoiceField(
        choices=[(GoodsIssue.State.DRAFT, "Draft"), (GoodsIssue.State.ISSUED, "Issued")],
        required=False,
    )

    class Meta:
        model = GoodsIssue
        fields = ["issued_on", "division", "requested_by", "issued_by", "received_by", "note"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["issued_on"].required = False

    def clean_issued_on(self):
        return self.cleaned_data.get("issued_on") or self.instance.issued_on


class FromStoreRequestForm(forms.Form):
    store_request = forms.IntegerField()
    issued_by = forms.CharField(max_length=255, required=False)


class GoodsReceiptStateForm(forms.Form):
    state = forms.ChoiceField(choices=GoodsReceipt.State.choices)


class StoreRequestStateForm(forms.Form):
    state = forms.ChoiceField(choices=StoreRequest.State.choices)


class GoodsIssueStateForm(forms.Form):
    state = forms.ChoiceField(choices=GoodsIssue.State.choices)
    received_by = forms.CharField(max_length=255, required=False)
