from faker import Faker
from faker.providers import BaseProvider


class EditorialProvider(BaseProvider):
    """
    编辑站点示例数据生成器
    生成生活方式类文章的标题、摘要与正文
    """

    # 标题开头
    title_openers = [
        'The Quiet Art of', 'Rediscovering', 'A Beginner\'s Guide to', 'Notes on',
        'Why We Keep Coming Back to', 'Finding Balance Through', 'Small Steps Toward',
        'What I Learned From', 'The Case for', 'Slow Mornings and',
    ]

    # 标题主题
    title_subjects = [
        'Mindful Walking', 'Solo Travel', 'Morning Journaling', 'Watercolor Sketching',
        'Digital Minimalism', 'Coastal Villages', 'Learning an Instrument', 'Breathwork',
        'Night Trains', 'Seasonal Cooking', 'Reading Slowly', 'Gentle Routines',
    ]

    read_times = ['3 min read', '4 min read', '5 min read', '7 min read', '10 min read']

    def article_title(self):
        return f"{self.random_element(self.title_openers)} {self.random_element(self.title_subjects)}"

    def article_excerpt(self):
        return self.generator.sentence(nb_words=18)

    def article_body(self, paragraphs=4):
        """HTML 正文"""
        return ''.join(f'<p>{self.generator.paragraph(nb_sentences=5)}</p>' for _ in range(paragraphs))

    def read_time(self):
        return self.random_element(self.read_times)


# 初始化 Faker 并添加自定义 Provider
fake = Faker('en_US')
fake.add_provider(EditorialProvider)
