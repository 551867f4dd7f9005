import pytest

from archfolio.config.core.validator import (
    SchemaValidator, BusinessValidator, ValidationError, ValidationResult,
    boolean, color, email, enum, integer, list_of, mapping_of, string, url
)
from archfolio.config.schema import check_consistency, validate_config
from archfolio.config.defaults import get_default_config

pytestmark = pytest.mark.unit


class TestSchemaValidator:
    """Field checks, defaults and error reporting of the schema validator."""

    def setup_method(self):
        self.schema = {
            'name': string(min_length=2),
            'email': email(),
            'site': url(required=False),
            'color': color(required=False, default='#000000'),
            'level': integer(minimum=1, maximum=10),
            'mode': enum('light', 'dark', required=False, default='light'),
            'tags': list_of(string(), required=False, default=[]),
            'links': list_of({'label': string(), 'href': url()}, required=False),
            'answers': mapping_of(list_of(string()), required=False),
            'nested': {
                'flag': boolean(required=False, default=True),
            },
        }
        self.validator = SchemaValidator("sample", self.schema)

    def candidate(self, **overrides):
        data = {'name': 'Ada', 'email': 'ada@example.com', 'level': 3, 'nested': {}}
        data.update(overrides)
        return data

    def test_valid_candidate_gets_defaults(self):
        result = self.validator.validate(self.candidate())

        assert result.success is True
        assert result.errors == []
        assert result.data['color'] == '#000000'
        assert result.data['mode'] == 'light'
        assert result.data['tags'] == []
        assert result.data['nested']['flag'] is True

    def test_default_values_are_not_shared(self):
        first = self.validator.validate(self.candidate()).data
        first['tags'].append('mutated')
        second = self.validator.validate(self.candidate()).data
        assert second['tags'] == []

    def test_extra_fields_are_kept(self):
        result = self.validator.validate(self.candidate(extra={'anything': 1}))
        assert result.is_valid
        assert result.data['extra'] == {'anything': 1}

    def test_no_coercion_of_strings_to_numbers(self):
        result = self.validator.validate(self.candidate(level="3"))
        assert not result.is_valid
        assert result.errors[0].field == 'level'
        assert 'must be a number' in result.errors[0].message

    def test_booleans_are_not_numbers(self):
        result = self.validator.validate(self.candidate(level=True))
        assert [error.field for error in result.errors] == ['level']

    def test_all_errors_reported_in_one_pass(self):
        result = self.validator.validate({
            'name': 'A',
            'email': 'not-an-email',
            'level': 42,
            'site': 'nope',
            'mode': 'sepia',
            'nested': {'flag': 'yes'},
        })

        fields = {error.field for error in result.errors}
        assert fields == {'name', 'email', 'level', 'site', 'mode', 'nested.flag'}

    def test_list_items_use_index_segments(self):
        result = self.validator.validate(self.candidate(links=[
            {'label': 'ok', 'href': 'https://example.com'},
            {'label': 'broken', 'href': 'example'},
        ]))
        assert [error.field for error in result.errors] == ['links.1.href']

    def test_mapping_values_are_checked(self):
        result = self.validator.validate(self.candidate(answers={'hello': ['hi'], 'bye': 'ciao'}))
        assert [error.field for error in result.errors] == ['answers.bye']

    def test_missing_required_fields(self):
        result = self.validator.validate({'nested': {}})
        fields = sorted(error.field for error in result.errors)
        assert fields == ['email', 'level', 'name']
        assert all(error.message == 'Missing required field' for error in result.errors)

    def test_missing_section_is_an_error(self):
        result = self.validator.validate({'name': 'Ada', 'email': 'ada@example.com', 'level': 1})
        assert [error.field for error in result.errors] == ['nested']

    def test_non_mapping_root(self):
        result = self.validator.validate(["not", "a", "dict"])
        assert not result.is_valid
        assert 'must be an object' in result.errors[0].message

    def test_never_raises(self):
        class Exploding(dict):
            def get(self, *args):
                raise RuntimeError("boom")

        result = self.validator.validate(Exploding(name='x'))
        assert not result.is_valid
        assert 'boom' in result.errors[0].message

    def test_error_string_is_path_and_message(self):
        error = ValidationError("must be a valid URL", field="seo.siteUrl")
        assert str(error) == "seo.siteUrl: must be a valid URL"
        assert error.as_tuple() == ("seo.siteUrl", "must be a valid URL")


class TestBusinessValidator:

    def test_rules_collect_errors(self):
        def positive(config):
            result = ValidationResult()
            if config['value'] < 0:
                result.add_error(ValidationError("must be positive", field="value"))
            return result

        def explodes(config):
            raise KeyError("missing")

        result = BusinessValidator("sample", [positive, explodes]).validate({'value': -1})

        assert not result.is_valid
        assert len(result.errors) == 2
        assert result.errors[0].field == 'value'
        assert 'explodes' in result.errors[1].message


class TestSiteSchema:
    """The full site schema and its consistency rules."""

    def test_built_in_defaults_are_valid(self):
        result = validate_config(get_default_config())
        assert result.is_valid, result.messages()

    def test_invalid_theme_color_and_project(self, valid_config):
        valid_config['theme']['primaryColor'] = 'red'
        valid_config['portfolio']['projects'][0]['imageUrl'] = 'museum.jpg'
        valid_config['portfolio']['projects'][1]['year'] = 1800

        result = validate_config(valid_config)

        assert sorted(error.field for error in result.errors) == [
            'portfolio.projects.0.imageUrl',
            'portfolio.projects.1.year',
            'theme.primaryColor',
        ]

    def test_project_defaults_applied(self, valid_config):
        result = validate_config(valid_config)
        library = result.data['portfolio']['projects'][1]
        assert library['featured'] is False
        assert library['status'] == 'completed'

    def test_contact_email_must_be_a_string(self, valid_config):
        valid_config['contact']['email'] = 12345
        result = validate_config(valid_config)
        assert [error.field for error in result.errors] == ['contact.email']

    def test_seo_description_length(self, valid_config):
        valid_config['seo']['description'] = 'too short'
        result = validate_config(valid_config)
        assert result.errors[0].field == 'seo.description'

    def test_consistency_rules(self, valid_config):
        valid_config['features']['analytics'] = True
        valid_config['experience']['items'] = [{
            'id': 'studio', 'company': 'Studio', 'position': 'Architect', 'location': 'Oslo',
            'startDate': '2015-01', 'current': False, 'description': 'Designed several homes.',
        }]
        valid_config['portfolio']['projects'][1]['id'] = 'museum'

        messages = check_consistency(valid_config).messages()

        assert any(message.startswith('features.analytics') for message in messages)
        assert any(message.startswith('contact.formEndpoint') for message in messages)
        assert any(message.startswith('experience.items.0.endDate') for message in messages)
        assert any("duplicate id 'museum'" in message for message in messages)
