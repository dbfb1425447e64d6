from marshmallow import fields, validates_schema, ValidationError
from ..extensions import ma


class PolicyAcceptSchema(ma.Schema):
    policy_id = fields.Int(required=False, allow_none=True)
    name = fields.Str(required=False, allow_none=True)

    @validates_schema
    def id_or_name(self, data, **kwargs):
        if not data.get("policy_id") and not data.get("name"):
            raise ValidationError("policy_id or name required")


class PolicyReadSchema(ma.Schema):
    id = fields.Int()
    name = fields.Str()
    policy_text = fields.Str()
    version = fields.Int()
    updated_at = fields.DateTime()
