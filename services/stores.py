"""Thin document stores over the `users` and `surveys` collections."""
from models import Account, Survey, utc_now


class AccountStore:
    def __init__(self, collection):
        self.collection = collection

    def create(self, account):
        self.collection.insert_one(account.to_document())
        return account

    def get(self, account_id):
        doc = self.collection.find_one({"_id": account_id})
        return Account.from_document(doc) if doc else None

    def all(self):
        return [Account.from_document(d) for d in self.collection.find({})]

    def update(self, account_id, updates):
        updates = dict(updates, updatedAt=utc_now())
        result = self.collection.update_one({"_id": account_id}, {"$set": updates})
        return result.matched_count > 0

    def set_status(self, account_id, status):
        return self.update(account_id, {"status": status})

    def delete(self, account_id):
        result = self.collection.delete_one({"_id": account_id})
        return result.deleted_count > 0


class SurveyStore:
    def __init__(self, collection):
        self.collection = collection

    def create(self, user_id, answers):
        survey = Survey(userId=user_id, answers=dict(answers))
        self.collection.insert_one(survey.to_document())
        return survey

    def replace_answers(self, survey_id, answers):
        """Edit in place: answers and updatedAt change, createdAt is kept."""
        updates = dict(answers, updatedAt=utc_now())
        result = self.collection.update_one({"_id": survey_id}, {"$set": updates})
        if result.matched_count == 0:
            return None
        return self.get(survey_id)

    def get(self, survey_id):
        doc = self.collection.find_one({"_id": survey_id})
        return Survey.from_document(doc) if doc else None

    def first_for_user(self, user_id):
        doc = self.collection.find_one({"userId": user_id})
        return Survey.from_document(doc) if doc else None

    def for_user(self, user_id):
        return [Survey.from_document(d) for d in self.collection.find({"userId": user_id})]

    def all(self):
        return [Survey.from_document(d) for d in self.collection.find({})]

    def delete_for_user(self, user_id):
        result = self.collection.delete_many({"userId": user_id})
        return result.deleted_count
