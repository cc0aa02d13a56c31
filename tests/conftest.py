"""
Pytest configuration and fixtures for the genealogy import project
"""

import shutil
import sys
import tempfile
from pathlib import Path

import pytest


# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app  # noqa: E402


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)

@pytest.fixture
def sample_gedcom_data():
    """Sample GEDCOM 5.5.1 data: a couple, two children and a grandchild family"""
    return """0 HEAD
1 SOUR Family Tree Maker
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
1 LANG French
0 @I1@ INDI
1 NAME Jean /Dupont/
2 GIVN Jean
2 SURN Dupont
1 SEX M
1 BIRT
2 DATE 12 MAR 1920
2 PLAC Paris
1 OCCU Boulanger
1 FAMS @F1@
0 @I2@ INDI
1 NAME Marie /Martin/
1 SEX F
1 BIRT
2 DATE ABT 1922
1 DEAT
2 DATE 5 JAN 1980
2 PLAC Lyon
1 NOTE @N1@
1 FAMS @F1@
0 @I3@ INDI
1 NAME Pierre /Dupont/
1 SEX M
1 BIRT
2 DATE 1946
1 FAMC @F1@
1 FAMS @F2@
0 @I4@ INDI
1 NAME Anne /Dupont/
1 SEX F
1 FAMC @F1@
0 @I5@ INDI
1 NAME Claire /Leroy/
1 SEX F
1 FAMS @F2@
0 @I6@ INDI
1 NAME Louis /Dupont/
1 SEX M
1 BIRT
2 DATE 1975
1 FAMC @F2@
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
1 CHIL @I4@
1 MARR
2 DATE 15 JUN 1945
2 PLAC Paris
0 @F2@ FAM
1 HUSB @I3@
1 WIFE @I5@
1 CHIL @I6@
0 @N1@ NOTE Institutrice
1 CONT a Lyon
0 TRLR"""

@pytest.fixture
def sample_gedcom7_data():
    """Sample GEDCOM 7.0 data with map coordinates"""
    return """0 HEAD
1 GEDC
2 VERS 7.0
1 SOUR GeneaTool
0 @I1@ INDI
1 NAME Jeanne /Moreau/
1 SEX F
1 BIRT
2 DATE 3 FEB 1890
2 PLAC Lyon
3 MAP
4 LATI N45.764043
4 LONG E4.835659
1 DEAT
2 DATE BEF 1950
2 PLAC Buenos Aires
3 MAP
4 LATI S34.6037
4 LONG W58.3816
0 TRLR"""

@pytest.fixture
def sample_geneweb_data():
    """Sample GeneWeb data: two generations with blocks"""
    return """encoding: utf-8
gwplus

fam DUPONT Jean 12/03/1920 #bp Paris +15/06/1945 #mp Paris MARTIN Marie 03/04/1922
beg
- h Pierre 1946
- f Anne 1948 #occu Institutrice
end

fam DUPONT Pierre + LEROY Claire 1950
beg
- h Louis 1975
end

notes DUPONT Jean
beg
Boulanger a Paris
end notes

pevt DUPONT Jean
#deat 02/11/1990 #p Lyon
#resi 1950..1960 #p Marseille
end pevt

fevt DUPONT Pierre
#marr 10/05/1972 #p Nantes
end fevt
"""

@pytest.fixture
def sample_gedcom_file(temp_dir, sample_gedcom_data):
    """GEDCOM sample written to disk"""
    path = temp_dir / 'family.ged'
    path.write_text(sample_gedcom_data, encoding='utf-8')
    return path

@pytest.fixture
def sample_geneweb_file(temp_dir, sample_geneweb_data):
    """GeneWeb sample written to disk"""
    path = temp_dir / 'family.gw'
    path.write_text(sample_geneweb_data, encoding='utf-8')
    return path


class BaseTestConfig:
    """Test configuration with a small upload limit"""
    def __init__(self):
        self.secret_key = 'test-secret-key'
        self.max_upload_mb = 1
        self.log_level = 'WARNING'

    @property
    def max_content_length(self):
        return self.max_upload_mb * 1024 * 1024


@pytest.fixture
def app():
    """Create Flask app for testing"""
    app = create_app(BaseTestConfig())
    app.config['TESTING'] = True
    return app

@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()
