from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed
from wtforms import StringField, SubmitField
from wtforms.validators import Length, Optional

from app.utils.file_helper import ALLOWED_EXTENSIONS


class MediaUploadForm(FlaskForm):
    """文件上传表单"""
    file = FileField('Choose a file', validators=[
        FileRequired('Please choose a file to upload'),
        FileAllowed(sorted(ALLOWED_EXTENSIONS), 'This file type is not allowed'),
    ])
    submit = SubmitField('Upload')


class MediaAltForm(FlaskForm):
    alt_text = StringField('Alt text', validators=[Optional(), Length(max=300)])
    submit = SubmitField('Save alt text')
