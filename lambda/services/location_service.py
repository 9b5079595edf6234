"""
    Location Tree Editor module

    Countries are documents keyed by the slug of their name; governorates are
    an embedded array, and each governorate embeds its districts. Because the
    store's array primitives only reach top-level fields, any district change
    rewrites the country's whole `governorates` array.
"""

import logging
from typing import List, Optional
from config import setup_logging, LOCATIONS_COLLECTION
from services.live_view import reduce_countries
from services.taxonomy_editor import TaxonomyEditor
from taxonomy_errors import DeletionBlocked, InvalidSlug, NotFound
from taxonomy_schemas import LocationCountry, LocationDistrict, LocationGovernorate, TaxonomyField
from utils.helpers import slugify


setup_logging()
logger = logging.getLogger(__name__)

class LocationTreeEditor(TaxonomyEditor):
    """Country -> governorate -> district editor over `locations`"""

    collection = LOCATIONS_COLLECTION
    reducer = staticmethod(reduce_countries)

    @property
    def countries(self) -> List[LocationCountry]:
        return self.live_view.state

    def get_country(self, country_id: str) -> Optional[LocationCountry]:
        return next((c for c in self.countries if c.id == country_id), None)

    def _require_country(self, country_id: str) -> LocationCountry:
        country = self.get_country(country_id)
        if country is None:
            raise NotFound("Country not found")
        return country

    def find_governorate(self, country_id: str, governorate_id: str) -> LocationGovernorate:
        governorate = self._require_country(country_id).find_governorate(governorate_id)
        if governorate is None:
            raise NotFound("Governorate not found")
        return governorate

    def find_district(self, country_id: str, governorate_id: str, district_id: str) -> LocationDistrict:
        governorate = self.find_governorate(country_id, governorate_id)
        district = next((d for d in governorate.districts if d.id == district_id), None)
        if district is None:
            raise NotFound("District not found")
        return district

    def _write_governorates(self, description: str, country_id: str,
                            governorates: List[LocationGovernorate]) -> None:
        document = [governorate.to_document() for governorate in governorates]
        self._store_call(description, self.store.update_document,
                         self.collection, country_id, {'governorates': document})

    # ------------------------------ add ------------------------------

    def add_country(self, name: str) -> str:
        """Create (or silently overwrite) the country keyed by slug(name)"""
        cleaned = self._require_name(name, "Country")
        country_id = slugify(cleaned)
        if not country_id:
            raise InvalidSlug("Country name results in an empty or invalid slug. Please use a different name.")

        if self.get_country(country_id) is not None:
            logger.warning(f"Country '{country_id}' already exists and will be overwritten")

        with self._submitting():
            self._store_call("add country", self.store.set_document,
                             self.collection, country_id, {'name': cleaned, 'governorates': []})

        logger.info(f"Country '{cleaned}' stored under '{country_id}'")
        return country_id

    def add_governorate(self, country_id: str, name: str) -> LocationGovernorate:
        cleaned = self._require_name(name, "Governorate")
        country = self._require_country(country_id)
        governorate = LocationGovernorate(id=slugify(cleaned), name=cleaned)

        if governorate.id in country.governorate_ids():
            logger.warning(f"Governorate id '{governorate.id}' already used in '{country.name}'")

        with self._submitting():
            self._store_call("add governorate", self.store.array_union,
                             self.collection, country.id, 'governorates', [governorate.to_document()])

        logger.info(f"Governorate '{cleaned}' added to '{country.name}'")
        return governorate

    def add_district(self, country_id: str, governorate_id: str, name: str) -> LocationDistrict:
        cleaned = self._require_name(name, "District")
        country = self._require_country(country_id)
        target = self.find_governorate(country_id, governorate_id)
        district = LocationDistrict(id=slugify(cleaned), name=cleaned)

        if district.id in target.district_ids():
            logger.warning(f"District id '{district.id}' already used in '{target.name}'")

        governorates = [
            governorate.model_copy(update={'districts': governorate.districts + [district]})
            if governorate is target else governorate
            for governorate in country.governorates
        ]

        with self._submitting():
            self._write_governorates("add district", country.id, governorates)

        logger.info(f"District '{cleaned}' added to '{target.name}'")
        return district

    # ----------------------------- delete ----------------------------

    def delete_country(self, country_id: str) -> None:
        country = self._require_country(country_id)

        with self._submitting():
            blocked = (
                self.guard.is_associated([country.id], TaxonomyField.LOCATION_COUNTRY)
                or self.guard.is_associated(country.governorate_ids(), TaxonomyField.LOCATION_GOVERNORATE)
                or self.guard.is_associated(country.district_ids(), TaxonomyField.LOCATION_DISTRICT)
            )
            if blocked:
                logger.warning(f"Deletion of country '{country.name}' blocked by listings")
                raise DeletionBlocked("country", country.name)

            self._store_call("delete country", self.store.delete_document, self.collection, country.id)

        logger.info(f"Country '{country.name}' deleted")

    def delete_governorate(self, country_id: str, governorate: LocationGovernorate) -> None:
        country = self._require_country(country_id)

        with self._submitting():
            blocked = (
                self.guard.is_associated([governorate.id], TaxonomyField.LOCATION_GOVERNORATE)
                or self.guard.is_associated(governorate.district_ids(), TaxonomyField.LOCATION_DISTRICT)
            )
            if blocked:
                logger.warning(f"Deletion of governorate '{governorate.name}' blocked by listings")
                raise DeletionBlocked("governorate", governorate.name)

            remaining = [g for g in country.governorates if g.id != governorate.id]
            self._write_governorates("delete governorate", country.id, remaining)

        logger.info(f"Governorate '{governorate.name}' removed from '{country.name}'")

    def delete_district(self, country_id: str, governorate_id: str, district: LocationDistrict) -> None:
        country = self._require_country(country_id)
        target = self.find_governorate(country_id, governorate_id)

        with self._submitting():
            if self.guard.is_associated([district.id], TaxonomyField.LOCATION_DISTRICT):
                logger.warning(f"Deletion of district '{district.name}' blocked by listings")
                raise DeletionBlocked("district", district.name)

            governorates = [
                governorate.model_copy(update={'districts': [d for d in governorate.districts if d.id != district.id]})
                if governorate is target else governorate
                for governorate in country.governorates
            ]
            self._write_governorates("delete district", country.id, governorates)

        logger.info(f"District '{district.name}' removed from '{target.name}'")
