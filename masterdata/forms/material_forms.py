from django import forms

from masterdata.models import Material, MaterialCategory, Unit


class EntityScopedFormMixin:
    """Uniqueness checks per entity (entity is not a form field, so
    ModelForm.validate_unique cannot see it)."""

    unique_field = None

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._entity = entity

    def clean(self):
        cleaned = super().clean()
        value = cleaned.get(self.unique_field)
        if value and self._entity is not None:
            qs = self._meta.model.objects.filter(entity=self._entity, **{self.unique_field: value})
            if self.instance.pk:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                self.add_error(self.unique_field, f"{value} is already used.")
        return cleaned

    def save(self, commit=True):
        obj = super().save(commit=False)
        if self._entity is not None:
            obj.entity = self._entity
        if commit:
            obj.save()
        return obj


class MaterialCategoryForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "name"

    class Meta:
        model = MaterialCategory
        fields = ["name", "description", "parent"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, entity=entity, **kwargs)
        if entity is not None:
            self.fields["parent"].queryset = MaterialCategory.objects.filter(entity=entity)


class UnitForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "symbol"

    class Meta:
        model = Unit
        fields = ["name", "symbol"]


class MaterialForm(EntityScopedFormMixin, forms.ModelForm):
    unique_field = "code"

    class Meta:
        model = Material
        fields = ["category", "unit", "code", "name", "description"]

    def __init__(self, *args, entity=None, **kwargs):
        super().__init__(*args, entity=entity, **kwargs)
        if entity is not None:
            self.fields["category"].queryset = MaterialCategory.objects.filter(entity=entity)
            self.fields["unit"].queryset = Unit.objects.filter(entity=entity)
