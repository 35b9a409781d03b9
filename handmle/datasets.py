"""
Public teaching datasets for the worked examples and the test suite.

Loaded offline from the libraries that ship them (lifelines, statsmodels),
with the derived covariates the example scripts use.
"""

import numpy as np
import pandas as pd
import statsmodels.api as sm
from lifelines.datasets import load_gbsg2 as _lifelines_gbsg2
from lifelines.datasets import load_rossi as _lifelines_rossi


def load_rossi() -> pd.DataFrame:
    """
    Rossi et al. (1980) recidivism data, 432 released prisoners.

    Columns: week (time to arrest or censoring at 52), arrest (event),
    fin, age, race, wexp, mar, paro, prio, plus age_c (age centred at its
    mean).
    """
    df = _lifelines_rossi().copy()
    df['age_c'] = df['age'] - df['age'].mean()
    return df


def load_gbsg2() -> pd.DataFrame:
    """
    German Breast Cancer Study Group 2 data, 686 patients.

    Adds hormon (1 = hormonal therapy), post_meno (1 = post-menopausal) and
    age_c (age centred at its mean). time is converted to years
    (days / 365.25), the original is kept as days; cens is the event
    indicator.
    """
    df = _lifelines_gbsg2().copy()
    df['hormon'] = (df['horTh'] == 'yes').astype(np.int64)
    df['post_meno'] = (df['menostat'] == 'Post').astype(np.int64)
    df['age_c'] = df['age'] - df['age'].mean()
    df['days'] = df['time']
    df['time'] = df['time'] / 365.25
    return df


def load_spector() -> pd.DataFrame:
    """
    Spector and Mazzeo (1980) teaching method data, 32 students.

    Columns: GPA, TUCE, PSI (1 = new method) and GRADE (1 = grade improved).
    """
    return sm.datasets.spector.load_pandas().data.copy()


def load_randhie() -> pd.DataFrame:
    """
    RAND Health Insurance Experiment, 20190 person-years.

    mdvis (outpatient visits) is the count outcome of the Poisson example;
    lncoins, idp, lpi, fmde, physlm, disea, hlthg, hlthf, hlthp are
    covariates.
    """
    return sm.datasets.randhie.load_pandas().data.copy()
