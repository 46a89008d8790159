from flask_wtf import FlaskForm
from wtforms import Form, StringField, TextAreaField, BooleanField, SubmitField, FieldList, FormField, HiddenField
from wtforms.validators import DataRequired, Length, Optional

from app.utils.validators import validate_link


class HeroForm(FlaskForm):
    """首页主视觉"""
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    subtitle = TextAreaField('Subtitle', validators=[Optional(), Length(max=500)])
    background_image = StringField('Background image URL', validators=[Optional(), Length(max=500)])
    button_text = StringField('Button text', validators=[Optional(), Length(max=50)])
    button_link = StringField('Button link', validators=[Optional(), Length(max=500), validate_link])
    submit = SubmitField('Save')


class PageSectionForm(FlaskForm):
    """页面内容块的标题部分，content 字段由区块类型动态渲染"""
    title = StringField('Title', validators=[Optional(), Length(max=200)])
    subtitle = TextAreaField('Subtitle', validators=[Optional(), Length(max=500)])
    is_active = BooleanField('Active')
    submit = SubmitField('Save')


class SectionForm(FlaskForm):
    """站点区块：只携带 CSRF，字段由区块类型动态渲染"""
    submit = SubmitField('Save')


class CardForm(Form):
    """单张精选卡片 (FieldList 子表单，CSRF 由外层表单负责)"""
    card_id = HiddenField()
    title = StringField('Title', validators=[Optional(), Length(max=120)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    image = StringField('Image URL', validators=[Optional(), Length(max=500)])
    link = StringField('Link', validators=[Optional(), Length(max=500), validate_link])
    remove = BooleanField('Remove')


class CardsForm(FlaskForm):
    cards = FieldList(FormField(CardForm), min_entries=0)
    add = SubmitField('Add card')
    submit = SubmitField('Save cards')


class SEOForm(FlaskForm):
    """全站 SEO 设置 (site_settings 中 key='seo')"""
    site_title = StringField('Site title', validators=[Optional(), Length(max=60)])
    site_description = TextAreaField('Site description', validators=[Optional(), Length(max=160)])
    default_og_image = StringField('Default social image URL', validators=[Optional(), Length(max=500)])
    twitter_handle = StringField('Twitter handle', validators=[Optional(), Length(max=50)])
    google_analytics_id = StringField('Google Analytics ID', validators=[Optional(), Length(max=50)])
    submit = SubmitField('Save settings')
