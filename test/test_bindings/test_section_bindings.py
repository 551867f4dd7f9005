import pytest

from archfolio.bindings import ConfigBindings, parse_date, timeline_sort_key
from archfolio.config.core.provider import ConfigSource
from archfolio.config.defaults import DEFAULT_CONFIG
from archfolio.core.exceptions import ConfigValidationError

pytestmark = pytest.mark.unit


def job(ident, start, current=False, end=None):
    item = {
        'id': ident,
        'company': f'{ident} Studio',
        'position': 'Architect',
        'location': 'Oslo',
        'startDate': start,
        'current': current,
        'description': 'Led housing and cultural projects.',
    }
    if end:
        item['endDate'] = end
    return item


@pytest.fixture
def bindings(make_manager, write_json, valid_config):
    valid_config['experience']['items'] = [
        job('old', '2012-01', end='2015-06'),
        job('undated', 'sometime', end='2016'),
        job('now', '2019-04', current=True),
        job('recent', '2016-09-01', end='2019-03'),
    ]
    valid_config['skills']['items'] = [
        {'name': 'Revit', 'level': 90, 'category': 'Software'},
        {'name': 'Sketching', 'level': 70, 'category': 'Design'},
        {'name': 'Rhino', 'level': 95, 'category': 'Software'},
        {'name': 'Zoning law', 'level': 40, 'category': 'Regulation'},
    ]
    write_json("site.json", valid_config)
    manager = make_manager([ConfigSource.default(0), ConfigSource.file("site.json", 10)])
    manager.initialize()
    return ConfigBindings(manager)


class TestDates:

    @pytest.mark.parametrize("value, expected", [
        ('2020-05-17', (2020, 5, 17)),
        ('2020-05', (2020, 5, 1)),
        (' 2020 ', (2020, 1, 1)),
    ])
    def test_supported_formats(self, value, expected):
        parsed = parse_date(value)
        assert (parsed.year, parsed.month, parsed.day) == expected

    @pytest.mark.parametrize("value", ['May 2020', '', None, 2020])
    def test_unparseable(self, value):
        assert parse_date(value) is None


class TestPortfolio:

    def test_reads(self, bindings):
        portfolio = bindings.portfolio
        assert [project['id'] for project in portfolio.projects()] == ['museum', 'library']
        assert [project['id'] for project in portfolio.featured_projects()] == ['museum']
        assert portfolio.categories() == ['Civic', 'Cultural']
        assert list(portfolio.projects_by_category()) == ['Cultural', 'Civic']
        assert portfolio.project('library')['year'] == 2019
        assert portfolio.project('nope') is None
        assert portfolio.is_enabled()

    def test_schema_defaults_applied(self, bindings):
        assert bindings.portfolio.project('library')['featured'] is False
        assert bindings.portfolio.project('library')['status'] == 'completed'

    def test_add_update_remove(self, bindings):
        portfolio = bindings.portfolio
        version = bindings.manager.version

        portfolio.add_project({
            'id': 'pavilion', 'title': 'Pavilion', 'description': 'A summer pavilion in oak.',
            'category': 'Cultural', 'imageUrl': 'https://img.example.com/p.jpg', 'year': 2023,
        })
        portfolio.update_project('pavilion', {'featured': True})
        portfolio.remove_project('museum')

        assert [project['id'] for project in portfolio.featured_projects()] == ['pavilion']
        assert [project['id'] for project in portfolio.projects()] == ['library', 'pavilion']
        assert bindings.manager.version == version + 3

    def test_update_unknown_project(self, bindings):
        version = bindings.manager.version
        assert bindings.portfolio.update_project('nope', {'featured': True}) is None
        assert bindings.manager.version == version

    def test_invalid_project_rejected(self, bindings):
        with pytest.raises(ConfigValidationError):
            bindings.portfolio.add_project({'id': 'bad', 'title': 'Bad'})
        assert bindings.portfolio.project('bad') is None


class TestTimeline:

    def test_sorted_items(self, bindings):
        ordered = [item['id'] for item in bindings.experience.sorted_items()]
        assert ordered == ['now', 'recent', 'old', 'undated']

    def test_sort_key(self):
        assert timeline_sort_key({'current': True}) < timeline_sort_key({'startDate': '2024'})

    def test_current_and_lookup(self, bindings):
        assert [item['id'] for item in bindings.experience.current_items()] == ['now']
        assert bindings.experience.item('old')['endDate'] == '2015-06'
        assert bindings.education.items() == []

    def test_add_update_remove(self, bindings):
        experience = bindings.experience
        experience.update('now', {'current': False, 'endDate': '2024-01'})
        experience.add(job('next', '2024-02', current=True))
        experience.remove('undated')

        assert [item['id'] for item in experience.sorted_items()] == ['next', 'now', 'recent', 'old']


class TestSkills:

    def test_grouping(self, bindings):
        grouped = bindings.skills.by_category()
        assert [skill['name'] for skill in grouped['Software']] == ['Rhino', 'Revit']
        assert bindings.skills.categories() == ['Design', 'Regulation', 'Software']

    def test_top(self, bindings):
        assert [skill['name'] for skill in bindings.skills.top(2)] == ['Rhino', 'Revit']
        assert len(bindings.skills.top()) == 4

    def test_add_update_remove(self, bindings):
        skills = bindings.skills
        skills.add_skill({'name': 'Timber', 'level': 99, 'category': 'Design'})
        skills.update_skill('Sketching', {'level': 20})
        skills.remove_skill('Zoning law')

        assert [skill['name'] for skill in skills.by_category()['Design']] == ['Timber', 'Sketching']
        assert 'Regulation' not in skills.categories()

    def test_level_out_of_range(self, bindings):
        with pytest.raises(ConfigValidationError):
            bindings.skills.update_skill('Revit', {'level': 150})
        assert bindings.skills.top(1)[0]['name'] == 'Rhino'


class TestFeaturesAndSite:

    def test_features(self, bindings):
        assert bindings.features.is_enabled('portfolio') is True
        # Development tier switches analytics off
        assert bindings.features.is_enabled('analytics') is False
        assert bindings.features.is_enabled('teleport') is False
        assert 'blog' in bindings.features.enabled()
        assert bindings.analytics.is_enabled() is False
        assert bindings.analytics.tracking_id('googleAnalytics') is None

    def test_theme(self, bindings):
        theme = bindings.theme
        theme.update_color('primaryColor', '#101010')
        theme.update_font('primary', 'Lato')
        assert bindings.manager.get('theme.primaryColor') == '#101010'
        assert bindings.manager.get('theme.fonts.primary') == 'Lato'

        with pytest.raises(ConfigValidationError):
            theme.update_color('accentColor', 'teal')

        theme.reset()
        assert theme.config() == DEFAULT_CONFIG['theme']

    def test_contact_flags(self, bindings):
        flags = bindings.contact.flags()
        assert flags['enabled'] is True
        assert flags['mapEnabled'] is False

    def test_generic_sections(self, bindings):
        assert bindings.blog.get('postsPerPage') == DEFAULT_CONFIG['blog']['postsPerPage']
        assert bindings.chatbot.is_enabled() is False

    def test_site_metadata(self, bindings):
        bindings.manager.set('seo.author', '', validate=False)
        metadata = bindings.site_metadata()
        assert metadata['author'] == 'Ada'
        assert metadata['title'] == bindings.seo()['title']
        assert metadata['keywords'] == bindings.seo()['keywords']
        assert bindings.personal()['title'] == 'Principal Architect'
