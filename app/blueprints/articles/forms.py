from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, SubmitField, HiddenField
from wtforms.validators import DataRequired, Length, Optional

from app.utils.validators import validate_slug


class ArticleForm(FlaskForm):
    """文章编辑表单 (content 为富文本 HTML)"""
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    slug = StringField('Slug', validators=[Optional(), Length(max=200), validate_slug])
    excerpt = TextAreaField('Excerpt', validators=[Optional(), Length(max=500)])
    content = TextAreaField('Content', validators=[Optional()])
    featured_image = StringField('Featured image URL', validators=[Optional(), Length(max=500)])
    category = SelectField('Category', choices=[], validators=[DataRequired()])
    author_name = StringField('Author name', validators=[Optional(), Length(max=100)])
    read_time = StringField('Read time', validators=[Optional(), Length(max=30)])
    status = SelectField('Status', choices=[
        ('draft', 'Draft'),
        ('published', 'Published'),
        ('archived', 'Archived'),
    ], default='draft')
    meta_title = StringField('Meta title', validators=[Optional(), Length(max=60)])
    meta_description = TextAreaField('Meta description', validators=[Optional(), Length(max=160)])
    og_image = StringField('Social image URL', validators=[Optional(), Length(max=500)])
    submission_token = HiddenField()
    submit = SubmitField('Save')


class CategoryForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    slug = StringField('Slug', validators=[Optional(), Length(max=100), validate_slug])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    submission_token = HiddenField()
    submit = SubmitField('Save')
