from marshmallow import fields, validates_schema, ValidationError, post_load
from ..extensions import ma
from ..utils.clock import to_naive_utc

TIMELINE = ("nomination_start", "nomination_end", "voting_start", "voting_end")


class ElectionCreateSchema(ma.Schema):
    class_id = fields.Int(required=True)
    nomination_start = fields.DateTime(required=True)
    nomination_end = fields.DateTime(required=True)
    voting_start = fields.DateTime(required=True)
    voting_end = fields.DateTime(required=True)

    @post_load
    def normalize(self, data, **kwargs):
        for key in TIMELINE:
            data[key] = to_naive_utc(data[key])
        return data

    @validates_schema
    def ordered(self, data, **kwargs):
        stamps = [data.get(k) for k in TIMELINE]
        if any(s is None for s in stamps):
            return
        stamps = [to_naive_utc(s) for s in stamps]
        if not (stamps[0] <= stamps[1] <= stamps[2] <= stamps[3]):
            raise ValidationError(
                "Dates must satisfy nomination_start <= nomination_end <= voting_start <= voting_end"
            )


class ElectionReadSchema(ma.Schema):
    id = fields.UUID()
    class_id = fields.Int()
    nomination_start = fields.DateTime()
    nomination_end = fields.DateTime()
    voting_start = fields.DateTime()
    voting_end = fields.DateTime()
    active = fields.Bool()
    published = fields.Bool()
    created_by = fields.Str(allow_none=True)
    created_at = fields.DateTime()
