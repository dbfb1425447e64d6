from marshmallow import fields, validate
from ..extensions import ma


class NominationCreateSchema(ma.Schema):
    election_id = fields.UUID(required=True)
    manifesto = fields.Str(required=False, allow_none=True, validate=validate.Length(max=5000))
    photo_url = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))


class NominationRejectSchema(ma.Schema):
    reason = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))


class NominationReadSchema(ma.Schema):
    id = fields.Int()
    election_id = fields.UUID()
    student_id = fields.Str()
    name = fields.Function(lambda n: n.candidate.name if n.candidate else None)
    manifesto = fields.Str(allow_none=True)
    photo_url = fields.Str(allow_none=True)
    status = fields.Str()
    reviewed_by = fields.Str(allow_none=True)
    reviewed_at = fields.DateTime(allow_none=True)
    rejection_reason = fields.Str(allow_none=True)
    created_at = fields.DateTime()
