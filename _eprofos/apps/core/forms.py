from django import forms

from .utils import parse_lines


class ListTextareaWidget(forms.Textarea):
    """Affiche une liste JSON sous forme d'un élément par ligne"""

    def format_value(self, value):
        if isinstance(value, (list, tuple)):
            return '\n'.join(str(item) for item in value)
        return super().format_value(value)


class ListTextareaField(forms.Field):
    """Champ de formulaire : une ligne saisie = un élément de la liste"""
    widget = ListTextareaWidget

    def __init__(self, *args, min_items=0, **kwargs):
        self.min_items = min_items
        kwargs.setdefault('required', False)
        kwargs.setdefault('help_text', "Un élément par ligne")
        super().__init__(*args, **kwargs)
        self.widget.attrs.setdefault('class', 'form-control')
        self.widget.attrs.setdefault('rows', 4)

    def to_python(self, value):
        return parse_lines(value)

    def prepare_value(self, value):
        if isinstance(value, (list, tuple)):
            return '\n'.join(str(item) for item in value)
        return value

    def validate(self, value):
        if self.required and not value:
            raise forms.ValidationError(self.error_messages['required'], code='required')
        if self.min_items and len(value) < self.min_items:
            raise forms.ValidationError(
                f"Au moins {self.min_items} éléments sont requis.",
                code='min_items'
            )


class BootstrapFormMixin:
    """Applique les classes Bootstrap aux widgets du formulaire"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            widget = field.widget
            if isinstance(widget, (forms.CheckboxInput, forms.CheckboxSelectMultiple)):
                widget.attrs.setdefault('class', 'form-check-input')
            elif isinstance(widget, forms.Select):
                widget.attrs.setdefault('class', 'form-select')
            else:
                widget.attrs.setdefault('class', 'form-control')
