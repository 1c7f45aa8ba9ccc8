#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='django-ldapidentity',
    version='1.0.0',
    description='LDAP authentication, identity resolution and nested group discovery for Django',
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['django', 'ldap', 'authentication'],
    author="Caltech IMSS ADS",
    author_email="imss-ads-staff@caltech.edu",
    url='https://github.com/caltechads/django-ldapidentity',
    packages=find_packages(exclude=['bin', 'doc']),
    include_package_data=True,
    install_requires=[
        'django',
        'ldap_filter',
        'python-ldap',
    ],
    extras_require={
        'test': [
            'pytest',
            'python-ldap-faker',
        ],
        'docs': [
            'sphinx',
            'sphinx_rtd_theme',
            'sphinxcontrib-django',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3"
    ],
)
