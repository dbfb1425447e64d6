from marshmallow import fields, validate
from ..extensions import ma


class VoteSubmitSchema(ma.Schema):
    token = fields.Str(required=True, validate=validate.Length(min=1, max=256))
    candidate_id = fields.Str(required=True, validate=validate.Length(min=1, max=32))
    election_id = fields.UUID(required=True)


class VoteStatusSchema(ma.Schema):
    election_id = fields.UUID(required=True)
    has_voted = fields.Bool(required=True)
