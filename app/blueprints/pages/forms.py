from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, BooleanField, SubmitField, HiddenField
from wtforms.validators import DataRequired, Length, Optional

from app.utils.validators import validate_slug


class PageForm(FlaskForm):
    """独立页面编辑表单"""
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    slug = StringField('Slug', validators=[Optional(), Length(max=200), validate_slug])
    content = TextAreaField('Content', validators=[Optional()])
    is_published = BooleanField('Published')
    meta_title = StringField('Meta title', validators=[Optional(), Length(max=60)])
    meta_description = TextAreaField('Meta description', validators=[Optional(), Length(max=160)])
    og_image = StringField('Social image URL', validators=[Optional(), Length(max=500)])
    submission_token = HiddenField()
    submit = SubmitField('Save')
